from datetime import date, datetime, timezone
from typing import Optional

from utils.timezone_helpers import from_utc_to_local


def format_utc_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime object to an ISO 8601 string with 'Z' suffix.

    If the datetime is naive, it is assumed to be in UTC and is made aware.
    If it is timezone-aware, it is converted to UTC.
    
    Args:
        dt: A datetime object or None
        
    Returns:
        An ISO 8601 formatted string with 'Z' suffix, or None if the input is None.
    """
    if dt is None:
        return None

    # If the datetime is naive, assume it's UTC and make it timezone-aware.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # If it's already timezone-aware, ensure it's in UTC.
    else:
        dt = dt.astimezone(timezone.utc)

    # Format to ISO string and replace the +00:00 suffix with 'Z'.
    iso_string = dt.isoformat()
    
    if iso_string.endswith('+00:00'):
        return iso_string.replace('+00:00', 'Z')
    
    return iso_string


def format_attendance_timestamp(dt: datetime, tz: str = "UTC") -> str:
    """
    ISO 8601 timestamp in the attendance time zone, as shown to staff.

    UTC renders with a 'Z' suffix, any other zone with its ±HH:MM offset.
    """
    local_dt = from_utc_to_local(dt, tz)
    iso_string = local_dt.isoformat()
    if iso_string.endswith('+00:00'):
        return iso_string.replace('+00:00', 'Z')
    return iso_string


def attendance_date(dt: datetime, tz: str = "UTC") -> date:
    """Calendar day the punch belongs to (date portion of the local timestamp)."""
    return from_utc_to_local(dt, tz).date()
