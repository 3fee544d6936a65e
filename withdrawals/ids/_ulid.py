"""
Identifier source — monotonic ULIDs for new orders.

ULID layout (26 chars, Crockford base32, encoded by python-ulid):

    ttttttttttrrrrrrrrrrrrrrrr
    └ 48-bit ms ┘└─ 80-bit random ─┘

Lexicographic order of the string equals creation order.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from ulid import ULID


# ═══════════════════════════════════════════════════════════════════════════════
# Id Source Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class IdSource(Protocol):
    """
    Produces unique order identifiers.

    Note: Seeded with the operation timestamp (ms). Ids are strictly
    increasing for the same or increasing seeds.
    """

    def __call__(self, seed_ms: int) -> str: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Encoding
# ═══════════════════════════════════════════════════════════════════════════════

TIME_MAX = (1 << 48) - 1
RANDOM_MAX = (1 << 80) - 1


def encode_ulid(seed_ms: int, randomness: int) -> str:
    """Encode timestamp + 80 random bits into a ULID string."""
    if not 0 <= seed_ms <= TIME_MAX:
        raise ValueError(f"ULID timestamp out of range: {seed_ms}")
    if not 0 <= randomness <= RANDOM_MAX:
        raise ValueError(f"ULID randomness out of range: {randomness}")
    return str(ULID.from_int((seed_ms << 80) | randomness))


def decode_time(ulid: str) -> int:
    """Extract the millisecond timestamp from a ULID."""
    return ULID.from_str(ulid).milliseconds


def _random_bits() -> int:
    return int(ULID()) & RANDOM_MAX


# ═══════════════════════════════════════════════════════════════════════════════
# Monotonic ULID factory
# ═══════════════════════════════════════════════════════════════════════════════


class MonotonicUlid:
    """
    Monotonic ULID factory.

    A seed newer than the last one starts fresh randomness.
    A seed equal to or older than the last one reuses the last timestamp and
    increments the random part, so ids never go backwards.

    Note: Thread-safe. Share one instance per process.

    Example:
        ids = MonotonicUlid()
        a = ids(1_700_000_000_000)
        b = ids(1_700_000_000_000)
        assert a < b
    """

    def __init__(self, random: Callable[[], int] = _random_bits) -> None:
        self._random = random
        self._lock = threading.Lock()
        self._last_time = -1
        self._last_random = 0

    def __call__(self, seed_ms: int) -> str:
        with self._lock:
            if seed_ms > self._last_time:
                self._last_time = seed_ms
                self._last_random = self._random() & RANDOM_MAX
            else:
                if self._last_random >= RANDOM_MAX:
                    raise OverflowError("ULID random component exhausted for this millisecond")
                self._last_random += 1
            return encode_ulid(self._last_time, self._last_random)


__all__ = (
    "IdSource",
    "MonotonicUlid",
    "encode_ulid",
    "decode_time",
)
