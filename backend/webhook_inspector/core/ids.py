"""Monotonic, time-ordered identifiers for captured webhooks.

Ids are RFC 9562 UUID version 7 values. The high 48 bits hold milliseconds
since the epoch; the 74 bits around the version and variant fields act as a
counter seeded with random entropy at the start of every millisecond. Within
one generator, each id is strictly greater than the one before it, including
when several ids are issued in the same millisecond or the wall clock steps
backwards. The canonical string form therefore sorts in issue order.
"""

from __future__ import annotations

import secrets
import threading
import time
from datetime import datetime
from uuid import UUID

from webhook_inspector.core.time import from_epoch_ms

_TIMESTAMP_BITS = 48
_COUNTER_BITS = 74
_RAND_B_BITS = 62
_MAX_TIMESTAMP = (1 << _TIMESTAMP_BITS) - 1
_MAX_COUNTER = (1 << _COUNTER_BITS) - 1
_RAND_B_MASK = (1 << _RAND_B_BITS) - 1
_VERSION = 0x7
_VARIANT = 0b10


def _compose(timestamp_ms: int, counter: int) -> UUID:
    rand_a = counter >> _RAND_B_BITS
    rand_b = counter & _RAND_B_MASK
    value = (
        (timestamp_ms << 80)
        | (_VERSION << 76)
        | (rand_a << 64)
        | (_VARIANT << 62)
        | rand_b
    )
    return UUID(int=value)


def _fresh_counter() -> int:
    # Top counter bit stays clear so a millisecond has room for many increments.
    return secrets.randbits(_COUNTER_BITS - 1)


def timestamp_ms_of(value: UUID) -> int:
    """Return the millisecond timestamp embedded in a version 7 id."""
    return value.int >> 80


def timestamp_of(value: UUID) -> datetime:
    """Return the embedded timestamp as a naive UTC datetime."""
    return from_epoch_ms(timestamp_ms_of(value))


class MonotonicIdGenerator:
    """Thread-safe issuer of strictly increasing UUIDv7 identifiers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_timestamp = -1
        self._last_counter = 0

    def next(self, *, timestamp_ms: int | None = None) -> UUID:
        """Issue a new id, optionally anchored at an explicit timestamp."""
        requested = time.time_ns() // 1_000_000 if timestamp_ms is None else int(timestamp_ms)
        if requested < 0 or requested > _MAX_TIMESTAMP:
            raise ValueError("timestamp_ms out of UUIDv7 48-bit range")

        with self._lock:
            if requested > self._last_timestamp:
                stamp = requested
                counter = _fresh_counter()
            else:
                stamp = self._last_timestamp
                counter = self._last_counter + 1
                if counter > _MAX_COUNTER:
                    stamp += 1
                    counter = _fresh_counter()
                if stamp > _MAX_TIMESTAMP:
                    raise OverflowError("UUIDv7 timestamp space exhausted")
            self._last_timestamp = stamp
            self._last_counter = counter
        return _compose(stamp, counter)

    __call__ = next


default_id_generator = MonotonicIdGenerator()


def new_webhook_id() -> UUID:
    """Issue an id from the process-wide generator."""
    return default_id_generator.next()
