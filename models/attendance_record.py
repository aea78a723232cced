from datetime import date, datetime
from typing import Optional

from pydantic import field_serializer
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime


# Defines a Table "attendance_record" w/ One Row Per Phone Per Calendar Day
class AttendanceRecord(SQLModel, table=True):
    __tablename__ = "attendance_record"

    __table_args__ = (
        # At most one record per phone per day
        Index(
            "ix_attendance_record_phone_work_date",
            "phone_number",
            "work_date",
            unique=True,
        ),
        Index("ix_attendance_record_work_date", "work_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone_number: str
    work_date: date
    time_in: Optional[datetime] = Field(default=None)
    time_out: Optional[datetime] = Field(default=None)
    location: Optional[str] = Field(default=None)
    department: Optional[str] = Field(default=None)

    @field_serializer("time_in", "time_out")
    def serialize_times(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure punch times are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)
