"""Timezone utility functions.

Timestamps are persisted as naive UTC so SQLite and PostgreSQL
(TIMESTAMP WITHOUT TIME ZONE) round-trip identical values:
- Inbound datetimes are normalized with to_utc_naive()
- Outbound datetimes are re-attached to UTC with to_utc()
"""

from datetime import UTC, date, datetime, time


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to timezone-aware UTC.

    Args:
        dt: Datetime (timezone-aware or naive)

    Returns:
        Datetime in UTC timezone
    """
    if dt.tzinfo is None:
        # Assume UTC if naive
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_utc_naive(dt: datetime) -> datetime:
    """Convert datetime to naive UTC for storage and query parameters."""
    return to_utc(dt).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """Naive UTC midnight for a calendar date."""
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Naive UTC 23:59:59 for a calendar date."""
    return datetime.combine(day, time(23, 59, 59))
