"""
Ids — order identifier sources.

    from withdrawals import ids

    source = ids.MonotonicUlid()
    order_id = source(now_ms)
"""

from withdrawals.ids._ulid import (
    IdSource,
    MonotonicUlid,
    encode_ulid,
    decode_time,
)

__all__ = (
    "IdSource",
    "MonotonicUlid",
    "encode_ulid",
    "decode_time",
)
