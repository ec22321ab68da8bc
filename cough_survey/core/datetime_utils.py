"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Use this instead of datetime.now(timezone.utc) directly so tests can
    patch the clock in one place.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite may return timezone-naive datetimes even when stored as timezone-aware.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utc_day_bounds(day: date) -> Tuple[datetime, datetime]:
    """
    Return the half-open UTC interval [start, end) covering a calendar date.

    Args:
        day: Calendar date interpreted in UTC

    Returns:
        Tuple of (start, end) timezone-aware datetimes
    """
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def is_on_utc_date(dt: datetime, day: date) -> bool:
    """Whether dt falls on the given UTC calendar date."""
    return ensure_timezone_aware(dt).astimezone(timezone.utc).date() == day
