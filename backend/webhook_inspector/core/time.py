"""Time helpers shared across persistence and services."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Return a naive UTC datetime, matching the database column convention."""
    return datetime.now(UTC).replace(tzinfo=None)


def from_epoch_ms(value: int) -> datetime:
    """Convert milliseconds since the epoch into a naive UTC datetime."""
    return _EPOCH + timedelta(milliseconds=value)


def to_epoch_ms(value: datetime) -> int:
    """Convert a naive-UTC or aware datetime into milliseconds since the epoch."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return (value - _EPOCH) // timedelta(milliseconds=1)
