"""UTC clock helpers shared by the publisher components."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

Clock = Callable[[], datetime]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current datetime in UTC."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware datetime converted to UTC.

    Naive datetimes are assumed to already be expressed in UTC.
    """

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the Unix epoch."""

    return (ensure_utc(dt) - EPOCH) // timedelta(milliseconds=1)


def isoformat_millis(dt: datetime) -> str:
    """Render an ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""

    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")
