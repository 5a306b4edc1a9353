"""Date helpers shared across modules."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def ensure_utc(dt: datetime) -> datetime:
    """Force a datetime into UTC without altering instant."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_date(dt: datetime, tz: tzinfo, include_time: bool = False) -> str:
    """Render ``dt`` in the reference zone as ``yyyy-MM-dd`` (optionally with time)."""
    local = ensure_utc(dt).astimezone(tz)
    return local.strftime(DATETIME_FORMAT if include_time else DATE_FORMAT)


def yesterday(tz: tzinfo, now: datetime | None = None) -> str:
    """Calendar day before ``now`` in the reference zone."""
    local = ensure_utc(now or datetime.now(tz=UTC)).astimezone(tz)
    return (local.date() - timedelta(days=1)).strftime(DATE_FORMAT)


def from_epoch_millis(value: str | int) -> datetime:
    """Convert Gmail's ``internalDate`` (epoch milliseconds) to an aware UTC datetime."""
    return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
