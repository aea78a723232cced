import logging
from datetime import datetime
from typing import Callable, Optional

from core.errors import (
    SYSTEM_ERROR_MESSAGE,
    AuthorizationError,
    DependencyError,
    InboundValidationError,
)
from models.attendance_record import AttendanceRecord
from models.inbound_event import EventKind, InboundEvent
from models.staff import ClockAction, PendingRequest, StaffMember, StaffSnapshot
from services.attendance_ledger import AttendanceLedger
from services.notifier import Notifier
from services.pending_requests import PendingRequestStore, utc_now
from services.staff_roster import Roster
from utils.datetime_helpers import attendance_date, format_attendance_timestamp
from utils.geofence import GeoMatcher

logger = logging.getLogger(__name__)

# Replies
UNAUTHORIZED_USER = "Unauthorized user."
LOCATION_PROMPT = "Please share your location to confirm {action}."
COMMAND_FIRST = 'Please send "clock in" or "clock out" first.'
REQUEST_TIMED_OUT = 'Your request timed out. Please send "clock in" or "clock out" again.'
LOCATION_NOT_RECOGNIZED = "Location not at any office. Try again."
OFFICE_NOT_ALLOWED = "You are not authorized to clock in/out at {office}."
ALREADY_CLOCKED_IN = "You already clocked in today."
CLOCKED_IN = "Clocked in successfully at {timestamp} at {office}."
NO_CLOCK_IN_RECORD = "No clock-in record found for today."
ALREADY_CLOCKED_OUT = "You already clocked out today."
CLOCKED_OUT = "Clocked out successfully at {timestamp} at {office}."

COMMANDS = {action.value: action for action in ClockAction}


def parse_command(text: Optional[str]) -> Optional[ClockAction]:
    """Map free text to a clock action; case and extra whitespace are ignored."""
    if not text:
        return None
    return COMMANDS.get(" ".join(text.split()).lower())


class ConversationEngine:
    """
    Two-step clock in/out conversation: a text command followed by a shared
    location.

    Each inbound event is handled entirely under the sender's lock from the
    pending request store, so events for one phone never interleave while
    different phones proceed in parallel.
    """

    def __init__(
        self,
        roster: Roster,
        ledger: AttendanceLedger,
        notifier: Notifier,
        geo_matcher: GeoMatcher,
        pending_store: PendingRequestStore,
        timezone: str = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.roster = roster
        self.ledger = ledger
        self.notifier = notifier
        self.geo_matcher = geo_matcher
        self.pending_store = pending_store
        self.timezone = timezone
        self._clock = clock

    async def handle_inbound_event(self, event: InboundEvent) -> None:
        phone = event.sender
        async with self.pending_store.lock(phone):
            try:
                await self._dispatch(event)
            except DependencyError as e:
                logger.error(f"[ENGINE] ❌ Dependency failure for {phone}: {e}")
                await self.notifier.send_text(phone, e.reply)
            except (AuthorizationError, InboundValidationError) as e:
                if e.clear_pending:
                    self.pending_store.remove(phone)
                logger.info(f"[ENGINE] Rejected {event.kind.value} from {phone}: {e.reply}")
                await self.notifier.send_text(phone, e.reply)
            except Exception:
                logger.exception(f"[ENGINE] ❌ Unexpected error handling {event.kind.value} from {phone}")
                await self.notifier.send_text(phone, SYSTEM_ERROR_MESSAGE)

    async def _dispatch(self, event: InboundEvent) -> None:
        staff = await self.roster.find_by_phone(event.sender)
        if staff is None:
            raise AuthorizationError(UNAUTHORIZED_USER, clear_pending=False)

        if event.kind == EventKind.TEXT:
            await self._handle_command(staff, event)
        elif event.kind == EventKind.LOCATION:
            await self._handle_location(staff, event)
        else:
            logger.debug(f"[ENGINE] Ignoring {event.kind.value} message from {event.sender}")

    async def _handle_command(self, staff: StaffMember, event: InboundEvent) -> None:
        action = parse_command(event.text)
        if action is None:
            return

        self.pending_store.put(event.sender, action, StaffSnapshot.from_staff(staff))
        logger.info(f"[ENGINE] {event.sender} requested {action.value}; awaiting location")
        await self.notifier.send_location_request(
            event.sender, LOCATION_PROMPT.format(action=action.value)
        )

    async def _handle_location(self, staff: StaffMember, event: InboundEvent) -> None:
        phone = event.sender
        pending = self.pending_store.get(phone)
        if pending is None:
            raise InboundValidationError(COMMAND_FIRST)

        if self.pending_store.is_expired(pending, self._clock()):
            raise InboundValidationError(REQUEST_TIMED_OUT, clear_pending=True)

        office = self.geo_matcher.locate(event.latitude, event.longitude)
        if office is None:
            # Pending request kept so the user can share again
            raise InboundValidationError(LOCATION_NOT_RECOGNIZED)

        allowed = pending.staff_snapshot.allowed_offices
        if not allowed or office not in allowed:
            raise AuthorizationError(OFFICE_NOT_ALLOWED.format(office=office))

        try:
            await self.apply_attendance_action(phone, pending, office)
        finally:
            self.pending_store.remove(phone)

    async def apply_attendance_action(
        self, phone: str, pending: PendingRequest, office: str
    ) -> Optional[AttendanceRecord]:
        """
        Record the punch for today and reply. Must be called while holding the
        phone's lock. Returns the inserted/updated record, or None when the
        ledger was left untouched.
        """
        now = self._clock()
        timestamp = format_attendance_timestamp(now, self.timezone)
        today = attendance_date(now, self.timezone)
        record = await self.ledger.find_open_record(phone, today)

        if pending.action == ClockAction.CLOCK_IN:
            if record is not None and record.time_in is not None:
                await self.notifier.send_text(phone, ALREADY_CLOCKED_IN)
                return None

            saved = await self.ledger.insert(
                AttendanceRecord(
                    name=pending.staff_snapshot.name,
                    phone_number=phone,
                    work_date=today,
                    time_in=now,
                    time_out=None,
                    location=office,
                    department=pending.staff_snapshot.department,
                )
            )
            logger.info(f"[ENGINE] ✅ {phone} clocked in at {office} ({timestamp})")
            await self.notifier.send_text(phone, CLOCKED_IN.format(timestamp=timestamp, office=office))
            return saved

        if record is None or record.time_in is None:
            await self.notifier.send_text(phone, NO_CLOCK_IN_RECORD)
            return None
        if record.time_out is not None:
            await self.notifier.send_text(phone, ALREADY_CLOCKED_OUT)
            return None

        saved = await self.ledger.update(record, {"time_out": now, "location": office})
        logger.info(f"[ENGINE] ✅ {phone} clocked out at {office} ({timestamp})")
        await self.notifier.send_text(phone, CLOCKED_OUT.format(timestamp=timestamp, office=office))
        return saved
