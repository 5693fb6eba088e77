"""
Time helpers. Every timestamp the service stores or compares is naive UTC.
"""
from datetime import datetime, timezone
from typing import Optional


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def month_start(now: Optional[datetime] = None) -> datetime:
    """First instant of the calendar month containing now (UTC)."""
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
