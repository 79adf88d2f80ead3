"""
Date utilities for the trash retention window.
"""
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Some drivers (SQLite) hand back naive values even for
    ``DateTime(timezone=True)`` columns; those are stored as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(moment: datetime, now: Optional[datetime] = None) -> int:
    """
    Whole days elapsed between ``moment`` and ``now``, floored.

    Args:
        moment: Start of the interval
        now: End of the interval, defaults to the current UTC time

    Returns:
        int: floor((now - moment) / 86400s)
    """
    now = ensure_aware(now or utc_now())
    elapsed = now - ensure_aware(moment)
    return int(elapsed.total_seconds() // SECONDS_PER_DAY)


def days_remaining(
    deleted_at: datetime,
    retention_days: int = 90,
    now: Optional[datetime] = None,
) -> int:
    """
    Days left before a trashed item is eligible for automatic purge.

    Args:
        deleted_at: When the item went to the trash (audit ``created_at``)
        retention_days: Length of the retention window
        now: Reference time, defaults to the current UTC time

    Returns:
        int: max(0, retention_days - days elapsed)
    """
    return max(0, retention_days - days_since(deleted_at, now))
