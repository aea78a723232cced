import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import SQLModel

from core.config import Settings
from models.office import Office
from services.attendance_ledger import InMemoryAttendanceLedger, SqlAttendanceLedger
from services.conversation_engine import ConversationEngine
from services.notifier import Notifier, WhatsAppNotifier
from services.pending_requests import PendingRequestStore
from services.staff_roster import FirestoreRoster, Roster
from utils.geofence import GeoMatcher

logger = logging.getLogger(__name__)


# Everything the HTTP layer needs, created once per process
@dataclass
class AppServices:
    settings: Settings
    geo_matcher: GeoMatcher
    pending_store: PendingRequestStore
    notifier: Notifier
    conversation_engine: ConversationEngine


def offices_from_settings(settings: Settings):
    return [
        Office(
            id=config.id,
            latitude=config.latitude,
            longitude=config.longitude,
            radius_km=config.radius_km,
            position=position,
        )
        for position, config in enumerate(settings.offices)
    ]


def _prepare_sql_ledger(settings: Settings):
    from db.seed import seed_offices
    from db.session import get_engine

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    offices = seed_offices(engine, settings.offices)
    return SqlAttendanceLedger(engine), offices


async def build_services(
    settings: Settings,
    roster: Optional[Roster] = None,
    notifier: Optional[Notifier] = None,
) -> AppServices:
    """Wire the conversation engine from settings; raises on unusable configuration."""
    if settings.ledger_backend == "sql":
        ledger, offices = await asyncio.to_thread(_prepare_sql_ledger, settings)
    else:
        logger.warning("[STARTUP] ⚠️ Using in-memory ledger; attendance is lost on restart")
        ledger, offices = InMemoryAttendanceLedger(), offices_from_settings(settings)

    geo_matcher = GeoMatcher(offices)
    logger.info(f"[STARTUP] Geofencing {len(geo_matcher.offices)} office(s): {[o.id for o in geo_matcher.offices]}")

    pending_store = PendingRequestStore(ttl_seconds=settings.pending_request_ttl_seconds)
    notifier = notifier or WhatsAppNotifier(
        token=settings.whatsapp_token,
        phone_number_id=settings.phone_number_id,
        api_version=settings.graph_api_version,
        timeout_seconds=settings.whatsapp_timeout_seconds,
    )
    engine = ConversationEngine(
        roster=roster or FirestoreRoster(),
        ledger=ledger,
        notifier=notifier,
        geo_matcher=geo_matcher,
        pending_store=pending_store,
        timezone=settings.attendance_timezone,
    )
    return AppServices(
        settings=settings,
        geo_matcher=geo_matcher,
        pending_store=pending_store,
        notifier=notifier,
        conversation_engine=engine,
    )
