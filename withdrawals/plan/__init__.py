"""
Plan — pure batching decisions.

    from withdrawals import plan as P

    match P.plan(pending_order, items, policy):
        case Ok(p):
            p.fill         # append to pending order (or None)
            p.new_orders   # chunks for new orders
"""

from withdrawals.plan._types import (
    Fill,
    NewOrder,
    Plan,
    EMPTY_PLAN,
)
from withdrawals.plan._planner import (
    check_batch_size,
    chunk,
    plan,
)

__all__ = (
    # Types
    "Fill",
    "NewOrder",
    "Plan",
    "EMPTY_PLAN",
    # Planner
    "check_batch_size",
    "chunk",
    "plan",
)
