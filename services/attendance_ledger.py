import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional, Protocol, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.errors import DependencyError
from models.attendance_record import AttendanceRecord

logger = logging.getLogger(__name__)


class AttendanceLedger(Protocol):
    async def find_open_record(self, phone: str, day: date) -> Optional[AttendanceRecord]: ...

    async def insert(self, record: AttendanceRecord) -> AttendanceRecord: ...

    async def update(self, record: AttendanceRecord, patch: Dict[str, Any]) -> AttendanceRecord: ...


class SqlAttendanceLedger:
    """Ledger backed by the attendance_record table; blocking work runs off the event loop."""

    def __init__(self, engine):
        self._engine = engine

    def _find_once(self, phone: str, day: date) -> Optional[AttendanceRecord]:
        with Session(self._engine) as session:
            record = session.exec(
                select(AttendanceRecord)
                .where(AttendanceRecord.phone_number == phone)
                .where(AttendanceRecord.work_date == day)
            ).first()
            if record is not None:
                session.expunge(record)
            return record

    def _insert_once(self, record: AttendanceRecord) -> AttendanceRecord:
        with Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)
            return record

    def _update_once(self, record_id: int, patch: Dict[str, Any]) -> AttendanceRecord:
        with Session(self._engine) as session:
            stored = session.get(AttendanceRecord, record_id)
            if stored is None:
                raise DependencyError(f"Attendance record {record_id} vanished before update")
            for field, value in patch.items():
                setattr(stored, field, value)
            session.add(stored)
            session.commit()
            session.refresh(stored)
            session.expunge(stored)
            return stored

    async def find_open_record(self, phone: str, day: date) -> Optional[AttendanceRecord]:
        try:
            return await asyncio.to_thread(self._find_once, phone, day)
        except SQLAlchemyError as e:
            raise DependencyError(f"[LEDGER] find failed for {phone} on {day}: {e}")

    async def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            saved = await asyncio.to_thread(self._insert_once, record)
        except SQLAlchemyError as e:
            raise DependencyError(f"[LEDGER] insert failed for {record.phone_number}: {e}")
        logger.info(f"[LEDGER] Inserted record {saved.id} for {saved.phone_number} on {saved.work_date}")
        return saved

    async def update(self, record: AttendanceRecord, patch: Dict[str, Any]) -> AttendanceRecord:
        try:
            saved = await asyncio.to_thread(self._update_once, record.id, patch)
        except SQLAlchemyError as e:
            raise DependencyError(f"[LEDGER] update failed for record {record.id}: {e}")
        logger.info(f"[LEDGER] Updated record {saved.id} fields {sorted(patch)}")
        return saved


def _copy_record(record: AttendanceRecord, **changes) -> AttendanceRecord:
    values = {name: getattr(record, name) for name in AttendanceRecord.model_fields}
    values.update(changes)
    return AttendanceRecord(**values)


class InMemoryAttendanceLedger:
    """Process-local ledger keyed by (phone, day); contents are lost on restart."""

    def __init__(self):
        self._records: Dict[Tuple[str, date], AttendanceRecord] = {}
        self._next_id = 1

    def all_records(self):
        """Copies of every stored record, for inspection in tests and debugging."""
        return [_copy_record(record) for record in self._records.values()]

    async def find_open_record(self, phone: str, day: date) -> Optional[AttendanceRecord]:
        record = self._records.get((phone, day))
        return _copy_record(record) if record is not None else None

    async def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        key = (record.phone_number, record.work_date)
        if key in self._records:
            raise DependencyError(f"[LEDGER] duplicate record for {key[0]} on {key[1]}")
        stored = _copy_record(record, id=self._next_id)
        self._next_id += 1
        self._records[key] = stored
        logger.info(f"[LEDGER] Inserted record {stored.id} for {stored.phone_number} on {stored.work_date}")
        return _copy_record(stored)

    async def update(self, record: AttendanceRecord, patch: Dict[str, Any]) -> AttendanceRecord:
        key = (record.phone_number, record.work_date)
        stored = self._records.get(key)
        if stored is None:
            raise DependencyError(f"[LEDGER] no record for {key[0]} on {key[1]} to update")
        stored = _copy_record(stored, **patch)
        self._records[key] = stored
        logger.info(f"[LEDGER] Updated record {stored.id} fields {sorted(patch)}")
        return _copy_record(stored)
