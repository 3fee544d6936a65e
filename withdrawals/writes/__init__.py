"""
Writes — conditioned operations for atomic commits.

    from withdrawals import writes as W

    staged = W.stage(plan, account, order_ids, now)
    staged.batches   # post-write order views
    staged.writes    # (OrderUpdate | OrderCreate | ItemUpdate, ...)
"""

from withdrawals.writes._types import (
    ItemUpdate,
    OrderUpdate,
    OrderCreate,
    WriteOp,
    WriteSet,
    describe,
)
from withdrawals.writes._builder import (
    OrderBatch,
    Staged,
    withdrawing,
    stage,
    build_writes,
)

__all__ = (
    # Ops
    "ItemUpdate",
    "OrderUpdate",
    "OrderCreate",
    "WriteOp",
    "WriteSet",
    "describe",
    # Builder
    "OrderBatch",
    "Staged",
    "withdrawing",
    "stage",
    "build_writes",
)
