"""
Datetime utilities.

Timestamps are stored as naive UTC datetimes; report bounds are computed in
the configured local timezone and converted back to naive UTC.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """
    Get current UTC time (timezone-aware).
    """
    return datetime.now(timezone.utc)


def utcnow_naive() -> datetime:
    """Current UTC time without tzinfo, as stored in the database."""
    return utcnow().replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Interpret a stored naive UTC datetime in the given timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name))


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
