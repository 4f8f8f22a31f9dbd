"""
ULID generation, UTC timestamps and the clock collaborator.

Entry ids are time-sortable ULIDs; every timestamp the store writes is a
timezone-aware UTC ISO-8601 string. Components never call ``datetime.now``
directly: they ask a ``Clock`` so tests can pin or step time.

Tags:
    timestamps, ulid, utc, clock
"""

from __future__ import annotations

import random
import time
from datetime import UTC, datetime
from typing import Protocol


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class Clock(Protocol):
    """Source of the current time (aware UTC datetime)."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return utc_now()


def generate_ulid() -> str:
    """
    Generate a ULID-like identifier.

    Format: 26 characters, Crockford base32, time-sortable.
    """
    timestamp_ms = int(time.time() * 1000)
    timestamp_chars = _encode_base32(timestamp_ms, 10)
    random_part = "".join(random.choices(_ENCODING, k=16))
    return timestamp_chars + random_part


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse ISO 8601 string to an aware datetime (naive values are taken as UTC)."""
    if s is None:
        return None
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def filename_timestamp(dt: datetime) -> str:
    """ISO timestamp safe for filenames (``:`` and ``.`` become ``-``).

    >>> filename_timestamp(datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=UTC))
    '2026-01-02T03-04-05-678Z'
    """
    iso = dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


# ULID base32 alphabet (Crockford's)
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))
