import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import DependencyError
from models.inbound_event import EventKind, InboundEvent
from models.office import Office
from models.staff import StaffMember
from services.attendance_ledger import InMemoryAttendanceLedger
from services.conversation_engine import ConversationEngine
from services.pending_requests import PendingRequestStore
from utils.geofence import GeoMatcher

STAFF_PHONE = "+233247877745"
OTHER_PHONE = "+233200000001"
MAIN_LOCATION = (9.4295, -1.0530)
ANNEX_LOCATION = (9.4047, -0.9839)
FAR_LOCATION = (9.4000, -0.9000)


def make_offices():
    return [
        Office(id="Main", latitude=9.4292, longitude=-1.0534, radius_km=0.5, position=0),
        Office(id="Annex", latitude=9.4047, longitude=-0.9839, radius_km=0.5, position=1),
    ]


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeRoster:
    def __init__(self, *staff: StaffMember):
        self.staff = {member.phone_number: member for member in staff}
        self.lookups = 0
        self.error = None

    async def find_by_phone(self, phone):
        self.lookups += 1
        if self.error is not None:
            raise self.error
        return self.staff.get(phone)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def send_text(self, phone, text):
        self.sent.append((phone, "text", text))
        return True

    async def send_location_request(self, phone, prompt):
        self.sent.append((phone, "location_request", prompt))
        return True

    def replies(self, phone=STAFF_PHONE):
        return [text for to, _, text in self.sent if to == phone]

    def last_reply(self, phone=STAFF_PHONE):
        replies = self.replies(phone)
        return replies[-1] if replies else None


class SlowLedger(InMemoryAttendanceLedger):
    """In-memory ledger that yields to the event loop inside every call."""

    def __init__(self, delay: float = 0.02):
        super().__init__()
        self.delay = delay
        self.inserts = 0
        self.updates = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_insert = False

    async def _pause(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

    async def find_open_record(self, phone, day):
        await self._pause()
        return await super().find_open_record(phone, day)

    async def insert(self, record):
        await self._pause()
        if self.fail_insert:
            raise DependencyError("ledger offline")
        self.inserts += 1
        return await super().insert(record)

    async def update(self, record, patch):
        await self._pause()
        self.updates += 1
        return await super().update(record, patch)


def text_event(body, phone=STAFF_PHONE):
    return InboundEvent(sender=phone, kind=EventKind.TEXT, text=body)


def location_event(location, phone=STAFF_PHONE):
    latitude, longitude = location
    return InboundEvent(sender=phone, kind=EventKind.LOCATION, latitude=latitude, longitude=longitude)


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 6, 7, 8, 30, tzinfo=timezone.utc))


@pytest.fixture
def staff():
    return StaffMember(
        phone_number=STAFF_PHONE,
        display_name="Abdul Rahman",
        department="Agronomy",
        allowed_offices=frozenset({"Main"}),
    )


@pytest.fixture
def roster(staff):
    return FakeRoster(staff)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ledger():
    return SlowLedger(delay=0.01)


@pytest.fixture
def pending_store(clock):
    return PendingRequestStore(ttl_seconds=None, clock=clock)


@pytest.fixture
def geo_matcher():
    return GeoMatcher(make_offices())


@pytest.fixture
def engine(roster, ledger, notifier, geo_matcher, pending_store, clock):
    return ConversationEngine(
        roster=roster,
        ledger=ledger,
        notifier=notifier,
        geo_matcher=geo_matcher,
        pending_store=pending_store,
        clock=clock,
    )
