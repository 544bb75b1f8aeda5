"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone

MS_PER_DAY = 24 * 60 * 60 * 1000
MS_PER_YEAR = 365 * MS_PER_DAY


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    """Aware datetime -> integer epoch milliseconds."""
    return int(dt.timestamp() * 1000)


def from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Milliseconds from start to end, floored at zero."""
    delta = end - start
    ms = delta.days * MS_PER_DAY + delta.seconds * 1000 + delta.microseconds // 1000
    return max(ms, 0)
