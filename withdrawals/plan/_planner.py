"""
Batch planner — split incoming items between the pending order and new orders.

    existing PENDING order (12/15)      items: a b c d e
         │
         ▼
    Fill(a b c) → 15/15 → PROCESSING
         │
         ▼
    remainder: d e → NewOrder(d e) → PENDING

Pure: no I/O, no clock, no ids.
"""

from __future__ import annotations

from collections.abc import Sequence

from kungfu import Result, Ok, Error

from withdrawals._policy import Policy
from withdrawals.domain import (
    InventoryItem,
    Order,
    OrderStatus,
    WithdrawError,
    WithdrawErrors,
    ConsistencyFault,
)
from withdrawals.plan._types import Fill, NewOrder, Plan, EMPTY_PLAN


# ═══════════════════════════════════════════════════════════════════════════════
# Preconditions
# ═══════════════════════════════════════════════════════════════════════════════


def check_batch_size(
    items: Sequence[InventoryItem],
    policy: Policy,
) -> Result[None, WithdrawError]:
    """Reject batches larger than policy.max_items."""
    if len(items) > policy.max_items:
        return Error(WithdrawErrors.too_many_items(len(items), policy.max_items))
    return Ok(None)


def _room_in(order: Order, capacity: int) -> int:
    if not order.is_pending:
        raise ConsistencyFault(
            f"Order {order.id} was offered as pending but has status {order.status.value}"
        )
    room = capacity - order.item_count
    if room <= 0:
        raise ConsistencyFault(
            f"Pending order {order.id} holds {order.item_count} items, capacity is {capacity}"
        )
    return room


# ═══════════════════════════════════════════════════════════════════════════════
# Chunking
# ═══════════════════════════════════════════════════════════════════════════════


def chunk(
    items: Sequence[InventoryItem],
    capacity: int,
) -> tuple[NewOrder, ...]:
    """
    Split items into consecutive orders of `capacity`.

    Full chunks start PROCESSING; a short trailing chunk starts PENDING.
    """
    chunks: list[NewOrder] = []
    for start in range(0, len(items), capacity):
        part = tuple(items[start : start + capacity])
        status = OrderStatus.PROCESSING if len(part) == capacity else OrderStatus.PENDING
        chunks.append(NewOrder(items=part, status=status))
    return tuple(chunks)


# ═══════════════════════════════════════════════════════════════════════════════
# plan(): Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def plan(
    existing: Order | None,
    items: Sequence[InventoryItem],
    policy: Policy | None = None,
) -> Result[Plan, WithdrawError]:
    """
    Decide which order each item goes to.

    Args:
        existing: The account's current PENDING order, if any
        items: Items to withdraw, in order
        policy: Capacity and batch limits

    Returns:
        Ok(Plan) or Error(TOO_MANY_ITEMS)

    Raises:
        ConsistencyFault: existing is not PENDING or is already at capacity

    Example:
        match plan(pending, items):
            case Ok(p):
                p.fill        # Fill | None
                p.new_orders  # tuple[NewOrder, ...]
            case Error(e):
                ...
    """
    policy = policy or Policy()

    match check_batch_size(items, policy):
        case Error(e):
            return Error(e)
        case _:
            pass

    if not items:
        return Ok(EMPTY_PLAN)

    fill: Fill | None = None
    remainder = tuple(items)

    if existing is not None:
        room = _room_in(existing, policy.capacity)
        to_append = remainder[:room]
        status = OrderStatus.PROCESSING if len(to_append) == room else OrderStatus.PENDING
        fill = Fill(order=existing, items=to_append, status=status)
        remainder = remainder[room:]

    new_orders = chunk(remainder, policy.capacity)

    # Still-pending existing order means everything fit into it.
    if fill is not None and not fill.reaches_capacity and new_orders:
        raise ConsistencyFault(
            f"Order {fill.order.id} stays pending while {len(new_orders)} new orders are planned"
        )

    return Ok(Plan(fill=fill, new_orders=new_orders))


__all__ = (
    "check_batch_size",
    "chunk",
    "plan",
)
