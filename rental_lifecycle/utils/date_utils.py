"""Date manipulation utilities"""

import math
from datetime import datetime, timedelta, timezone

ONE_DAY = timedelta(days=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days remaining until end, rounded up (a partial day counts as one)"""
    return math.ceil((as_utc(end) - as_utc(now)) / ONE_DAY)
