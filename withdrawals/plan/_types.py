"""
Plan types — immutable batching decisions.
"""

from __future__ import annotations

from dataclasses import dataclass

from withdrawals.domain import InventoryItem, Order, OrderStatus


# ═══════════════════════════════════════════════════════════════════════════════
# Fill: items appended to the existing pending order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Fill:
    """
    Append to the account's current PENDING order.

    Note: status is PROCESSING exactly when items fill the remaining room.
    """

    order: Order
    items: tuple[InventoryItem, ...]
    status: OrderStatus

    @property
    def reaches_capacity(self) -> bool:
        return self.status == OrderStatus.PROCESSING


# ═══════════════════════════════════════════════════════════════════════════════
# New Order: one chunk of the remainder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NewOrder:
    """A chunk of items that becomes a freshly created order."""

    items: tuple[InventoryItem, ...]
    status: OrderStatus

    @property
    def will_be_processing(self) -> bool:
        return self.status == OrderStatus.PROCESSING


# ═══════════════════════════════════════════════════════════════════════════════
# Plan
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Plan:
    """
    Where each incoming item goes.

    fill: existing PENDING order to append to, if any.
    new_orders: chunks for new orders, in creation order. Only the last may be PENDING.
    """

    fill: Fill | None
    new_orders: tuple[NewOrder, ...]

    @property
    def creates_orders(self) -> bool:
        return len(self.new_orders) > 0

    @property
    def is_empty(self) -> bool:
        return self.fill is None and not self.new_orders

    @property
    def item_count(self) -> int:
        filled = len(self.fill.items) if self.fill is not None else 0
        return filled + sum(len(chunk.items) for chunk in self.new_orders)


EMPTY_PLAN = Plan(fill=None, new_orders=())


__all__ = (
    "Fill",
    "NewOrder",
    "Plan",
    "EMPTY_PLAN",
)
