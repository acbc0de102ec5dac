"""
Timezone utilities for the booking service.

All instants are stored in UTC; availability windows are wall-clock times in
the mentor's declared IANA timezone, so every comparison goes through here.
"""

from datetime import date, datetime, time, timedelta
from typing import Tuple

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC datetime.

    SQLite hands back naive values for timezone-aware columns; those are
    treated as UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def get_timezone(name: str) -> pytz.BaseTzInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        ValueError: If the name is not a known timezone
    """
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def is_valid_timezone(name: str) -> bool:
    try:
        get_timezone(name)
    except ValueError:
        return False
    return True


def to_local(dt: datetime, timezone_name: str) -> datetime:
    """Convert an instant to wall-clock time in the given timezone."""
    return ensure_utc(dt).astimezone(get_timezone(timezone_name))


def day_of_week_index(day: date) -> int:
    """Day index with Sunday as 0 and Saturday as 6."""
    return day.isoweekday() % 7


def local_day_bounds_utc(local_date: date, timezone_name: str) -> Tuple[datetime, datetime]:
    """
    UTC instants bounding a calendar day in the given timezone.

    Returns the half-open range [midnight, next midnight); DST days are
    23 or 25 hours long.
    """
    tz = get_timezone(timezone_name)
    start_local = tz.localize(datetime.combine(local_date, time.min))
    end_local = tz.localize(datetime.combine(local_date + timedelta(days=1), time.min))
    return start_local.astimezone(pytz.UTC), end_local.astimezone(pytz.UTC)


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)
