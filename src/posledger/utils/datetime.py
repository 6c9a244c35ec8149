"""UTC datetime helpers for naive PostgreSQL timestamp columns."""

from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for PostgreSQL storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_from_now(days: int) -> datetime:
    """Naive UTC datetime `days` days in the future."""
    return now_utc() + timedelta(days=days)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
