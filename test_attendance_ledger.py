#!/usr/bin/env python3
"""
Attendance ledger backends: SQLModel table (in-memory SQLite) and process-local map.
"""
import asyncio
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from core.config import OfficeConfig
from core.errors import DependencyError
from db.seed import seed_offices
from models.attendance_record import AttendanceRecord
from services.attendance_ledger import InMemoryAttendanceLedger, SqlAttendanceLedger
from utils.datetime_helpers import format_utc_datetime

PHONE = "+233247877745"
DAY = date(2025, 6, 7)
CLOCK_IN_AT = datetime(2025, 6, 7, 8, 30, tzinfo=timezone.utc)
CLOCK_OUT_AT = datetime(2025, 6, 7, 16, 45, tzinfo=timezone.utc)


def new_record(**overrides):
    values = dict(
        name="Abdul Rahman",
        phone_number=PHONE,
        work_date=DAY,
        time_in=CLOCK_IN_AT,
        time_out=None,
        location="Main",
        department="Agronomy",
    )
    values.update(overrides)
    return AttendanceRecord(**values)


@pytest.fixture
def sql_engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(params=["sql", "memory"])
def any_ledger(request, sql_engine):
    if request.param == "sql":
        return SqlAttendanceLedger(sql_engine)
    return InMemoryAttendanceLedger()


def test_find_insert_update_cycle(any_ledger):
    async def _run():
        assert await any_ledger.find_open_record(PHONE, DAY) is None

        inserted = await any_ledger.insert(new_record())
        assert inserted.id is not None

        found = await any_ledger.find_open_record(PHONE, DAY)
        assert found.id == inserted.id
        assert found.time_out is None
        assert format_utc_datetime(found.time_in) == "2025-06-07T08:30:00Z"

        updated = await any_ledger.update(found, {"time_out": CLOCK_OUT_AT, "location": "Annex"})
        assert updated.location == "Annex"

        again = await any_ledger.find_open_record(PHONE, DAY)
        assert format_utc_datetime(again.time_out) == "2025-06-07T16:45:00Z"
        assert again.location == "Annex"

        assert await any_ledger.find_open_record(PHONE, date(2025, 6, 8)) is None
        assert await any_ledger.find_open_record("+15550001111", DAY) is None

    asyncio.run(_run())


def test_second_record_for_same_day_is_rejected(any_ledger):
    async def _run():
        await any_ledger.insert(new_record())
        with pytest.raises(DependencyError):
            await any_ledger.insert(new_record(time_in=CLOCK_OUT_AT))
        # a different day is fine
        await any_ledger.insert(new_record(work_date=date(2025, 6, 8)))

    asyncio.run(_run())


def test_update_of_unknown_record_fails(any_ledger):
    async def _run():
        with pytest.raises(DependencyError):
            await any_ledger.update(new_record(id=999), {"time_out": CLOCK_OUT_AT})

    asyncio.run(_run())


def test_in_memory_ledger_hands_out_copies():
    ledger = InMemoryAttendanceLedger()

    async def _run():
        await ledger.insert(new_record())
        found = await ledger.find_open_record(PHONE, DAY)
        found.time_out = CLOCK_OUT_AT
        return await ledger.find_open_record(PHONE, DAY)

    assert asyncio.run(_run()).time_out is None


def test_record_serializes_times_as_utc():
    dumped = new_record(time_out=CLOCK_OUT_AT).model_dump(mode="json")

    assert dumped["time_in"] == "2025-06-07T08:30:00Z"
    assert dumped["time_out"] == "2025-06-07T16:45:00Z"


def test_seed_offices_is_idempotent(sql_engine):
    configured = [
        OfficeConfig(id="Head_Office", latitude=9.4292, longitude=-1.0534, radius_km=0.5),
        OfficeConfig(id="Nyankpala", latitude=9.4047, longitude=-0.9839, radius_km=0.5),
    ]

    offices = seed_offices(sql_engine, configured)
    assert [(o.id, o.position) for o in offices] == [("Head_Office", 0), ("Nyankpala", 1)]

    configured[0] = OfficeConfig(id="Head_Office", latitude=9.4292, longitude=-1.0534, radius_km=2.0)
    offices = seed_offices(sql_engine, configured)
    assert len(offices) == 2
    # existing rows are never overwritten by configuration
    assert offices[0].radius_km == 0.5
