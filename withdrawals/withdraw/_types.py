"""
Withdrawal result types.
"""

from __future__ import annotations

from dataclasses import dataclass

from withdrawals.domain import Account, Order
from withdrawals.writes import OrderBatch


@dataclass(frozen=True, slots=True)
class Withdrawal:
    """
    Successful withdrawal.

    orders: every touched order after commit, with the batch this call
    assigned to it. The appended pending order (if any) comes first, then
    new orders in creation order.
    account: the account as passed in, unchanged.
    """

    orders: tuple[OrderBatch, ...]
    account: Account

    @property
    def order_ids(self) -> tuple[str, ...]:
        return tuple(batch.order.id for batch in self.orders)

    @property
    def created(self) -> tuple[Order, ...]:
        return tuple(batch.order for batch in self.orders if batch.created)

    @property
    def pending_order(self) -> Order | None:
        """The account's pending order after this withdrawal, if this call touched it."""
        for batch in self.orders:
            if batch.order.is_pending:
                return batch.order
        return None

    @property
    def item_count(self) -> int:
        return sum(len(batch.items) for batch in self.orders)


__all__ = ("Withdrawal",)
