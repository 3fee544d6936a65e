"""
Write-set builder — turn a Plan into post-write orders and conditioned ops.

    Plan ──stage()──► OrderBatch* ──► WriteSet
                      (what the orders look like after commit)

Ops are derived from the batches, never built separately,
so the returned views and the committed writes cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from withdrawals.domain import (
    Account,
    InventoryItem,
    ItemStatus,
    Order,
    OrderStatus,
    ConsistencyFault,
)
from withdrawals.plan import Plan
from withdrawals.writes._types import (
    ItemUpdate,
    OrderUpdate,
    OrderCreate,
    WriteOp,
    WriteSet,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Order Batch: one order after commit + the items this call gave it
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderBatch:
    """
    Post-write view of one touched order.

    order: full order as it will be stored (all items, new status).
    items: the batch assigned by this withdrawal, already WITHDRAWING.
    created: True for new orders, False for the appended pending order.
    """

    order: Order
    items: tuple[InventoryItem, ...]
    created: bool


@dataclass(frozen=True, slots=True)
class Staged:
    batches: tuple[OrderBatch, ...]
    writes: WriteSet

    @property
    def is_empty(self) -> bool:
        return not self.writes


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def withdrawing(item: InventoryItem, now: datetime) -> InventoryItem:
    """Item as it looks once assigned to an order."""
    return replace(item, status=ItemStatus.WITHDRAWING, updated_at=now)


def _appended(batch: OrderBatch) -> OrderUpdate:
    order = batch.order
    return OrderUpdate(
        order_id=order.id,
        expected=OrderStatus.PENDING,
        expected_count=order.item_count - len(batch.items),
        status=order.status,
        append=tuple(item.key for item in batch.items),
        updated_at=order.updated_at,
    )


def _item_updates(batch: OrderBatch, now: datetime) -> list[ItemUpdate]:
    return [
        ItemUpdate(
            key=item.key,
            expected=ItemStatus.UNFULFILLED,
            status=ItemStatus.WITHDRAWING,
            updated_at=now,
        )
        for item in batch.items
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# stage(): Plan → batches + writes
# ═══════════════════════════════════════════════════════════════════════════════


def stage(
    plan: Plan,
    account: Account,
    order_ids: Sequence[str],
    now: datetime,
) -> Staged:
    """
    Build post-write order views and the write set that produces them.

    Args:
        plan: Batching decision from plan()
        account: Owner of every new order
        order_ids: One fresh id per plan.new_orders entry, same order
        now: Operation timestamp for created_at / updated_at

    Raises:
        ConsistencyFault: id count mismatch, missing address for new orders,
            or the same item twice in the write set
    """
    if len(order_ids) != len(plan.new_orders):
        raise ConsistencyFault(
            f"Got {len(order_ids)} order ids for {len(plan.new_orders)} new orders"
        )
    if plan.creates_orders and account.shipping_address is None:
        raise ConsistencyFault(f"Cannot create orders for account {account.id} without address")

    batches: list[OrderBatch] = []

    if plan.fill is not None:
        fill = plan.fill
        items = tuple(withdrawing(item, now) for item in fill.items)
        order = replace(
            fill.order,
            status=fill.status,
            items=fill.order.items + items,
            updated_at=now,
        )
        batches.append(OrderBatch(order=order, items=items, created=False))

    for order_id, new_order in zip(order_ids, plan.new_orders):
        items = tuple(withdrawing(item, now) for item in new_order.items)
        order = Order(
            id=order_id,
            account_id=account.id,
            status=new_order.status,
            shipping_address=account.shipping_address,  # type: ignore[arg-type]
            items=items,
            created_at=now,
            updated_at=now,
        )
        batches.append(OrderBatch(order=order, items=items, created=True))

    return Staged(batches=tuple(batches), writes=build_writes(batches, now))


def build_writes(batches: Sequence[OrderBatch], now: datetime) -> WriteSet:
    """
    Conditioned ops for the given batches.

    Order: each order op is followed by the item updates of its batch.
    """
    writes: list[WriteOp] = []
    seen: set[object] = set()

    for batch in batches:
        if batch.created:
            writes.append(OrderCreate(order=batch.order))
        else:
            writes.append(_appended(batch))

        for update in _item_updates(batch, now):
            if update.key in seen:
                raise ConsistencyFault(f"Item {update.key} assigned twice in one withdrawal")
            seen.add(update.key)
            writes.append(update)

    return tuple(writes)


__all__ = (
    "OrderBatch",
    "Staged",
    "withdrawing",
    "stage",
    "build_writes",
)
