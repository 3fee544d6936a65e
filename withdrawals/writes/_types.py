"""
Write types — conditioned operations for one atomic commit.

Every op names the state it expects to find. A store applies all ops
of a write set or none of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from withdrawals.domain import ItemKey, ItemStatus, Order, OrderStatus


# ═══════════════════════════════════════════════════════════════════════════════
# Item Update: UNFULFILLED → WITHDRAWING
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ItemUpdate:
    """
    Update-if-match on an inventory item.

    Precondition: item exists and has status `expected`.
    """

    key: ItemKey
    expected: ItemStatus
    status: ItemStatus
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Order Update: append to the pending order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderUpdate:
    """
    Update-if-match on an existing order.

    Precondition: order exists, has status `expected` and holds exactly
    `expected_count` items.
    Effect: append `append`, set `status`, refresh updated_at.
    """

    order_id: str
    expected: OrderStatus
    expected_count: int
    status: OrderStatus
    append: tuple[ItemKey, ...]
    updated_at: datetime

    @property
    def new_count(self) -> int:
        return self.expected_count + len(self.append)


# ═══════════════════════════════════════════════════════════════════════════════
# Order Create: insert a new order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderCreate:
    """
    Create-if-absent for a new order.

    Preconditions: no order with this id exists. If the order is PENDING,
    the account holds no other PENDING order.
    """

    order: Order

    @property
    def order_id(self) -> str:
        return self.order.id


# ═══════════════════════════════════════════════════════════════════════════════
# Write Set
# ═══════════════════════════════════════════════════════════════════════════════

type WriteOp = ItemUpdate | OrderUpdate | OrderCreate
type WriteSet = tuple[WriteOp, ...]


def describe(op: WriteOp) -> str:
    """Short human-readable form of an op for errors and logs."""
    match op:
        case ItemUpdate(key=key, expected=expected):
            return f"item {key} expected {expected.value}"
        case OrderUpdate(order_id=order_id, expected=expected, expected_count=count):
            return f"order {order_id} expected {expected.value} with {count} items"
        case OrderCreate(order=order):
            return f"create order {order.id} ({order.status.value})"


__all__ = (
    "ItemUpdate",
    "OrderUpdate",
    "OrderCreate",
    "WriteOp",
    "WriteSet",
    "describe",
)
