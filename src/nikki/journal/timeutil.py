"""Identifier generation and timestamp normalisation.

Every timestamp the store writes goes through ``to_storage`` and every
timestamp it reads comes back through ``from_storage``, so values survive
the trip to disk (and through JSON) without losing sub-millisecond
precision or their timezone.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

_TICK = timedelta(microseconds=1)


def new_entry_id() -> str:
    """Return a random UUID4 string. Carries no ordering information."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime. Naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_storage(dt: datetime) -> str:
    """Serialise a datetime to a fixed-width UTC ISO-8601 string.

    The fixed width keeps lexical order equal to chronological order, which
    the ``created_at`` range index relies on.
    """
    return ensure_utc(dt).isoformat(timespec="microseconds")


def from_storage(value: str | int | float | datetime) -> datetime:
    """Rehydrate a stored timestamp into an aware UTC datetime.

    Accepts an ISO-8601 string, epoch milliseconds, or a datetime.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, UTC)
    if isinstance(value, str):
        return ensure_utc(datetime.fromisoformat(value))
    raise ValueError(f"Not a timestamp: {value!r}")


def next_update_time(previous: datetime) -> datetime:
    """Return a timestamp strictly later than ``previous``.

    Normally just the current time; bumps by one microsecond when the clock
    has not advanced (or went backwards) since ``previous``.
    """
    now = utc_now()
    floor = ensure_utc(previous) + _TICK
    return now if now >= floor else floor
