"""
UTC date helpers.

All day boundaries are UTC calendar days, never local wall-clock time.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_WINDOW_DAYS = 30


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_date_string(value: date) -> str:
    return value.isoformat()


def parse_utc_day(value: str) -> date:
    """Parse a `YYYY-MM-DD` string. Raises ValueError if not a calendar day."""
    return date.fromisoformat(value)


def shift_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def start_of_day(day: str) -> datetime:
    """`{day}T00:00:00.000Z`"""
    return datetime.combine(parse_utc_day(day), time.min, tzinfo=timezone.utc)


def end_of_day(day: str) -> datetime:
    """`{day}T23:59:59.999Z`"""
    return datetime.combine(
        parse_utc_day(day),
        time(23, 59, 59, 999000),
        tzinfo=timezone.utc,
    )


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into aware UTC.

    A trailing `Z` is accepted and naive values are read as UTC.
    Returns None if the value cannot be parsed.
    """
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        # Offsets can push 0001-01-01 / 9999-12-31 outside datetime's range
        return None


def to_iso_timestamp(value: datetime) -> str:
    """Serialize as `2026-02-20T16:12:00.000Z`."""
    utc_value = as_utc(value)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
