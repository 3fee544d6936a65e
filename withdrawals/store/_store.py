"""
Order repository — typed storage protocol.

All methods return Result for explicit error handling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto
from typing import Protocol

from kungfu import Result, Ok, Error

from withdrawals.domain import (
    InventoryItem,
    ItemKey,
    Order,
    OrderStatus,
    ShippingAddress,
)
from withdrawals.writes import (
    ItemUpdate,
    OrderUpdate,
    OrderCreate,
    WriteOp,
    WriteSet,
    describe,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Store Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


class CommitErrorKind(Enum):
    CONDITION_FAILED = auto()  # An op's precondition did not hold
    BACKEND = auto()  # Storage backend error


@dataclass(frozen=True)
class CommitError:
    """
    Atomic commit failure. Nothing was applied.

    Note: index/op point at the first op whose precondition failed.
    """

    kind: CommitErrorKind
    message: str
    index: int | None = None
    op: WriteOp | None = None
    cause: Exception | None = None

    @staticmethod
    def condition_failed(index: int, op: WriteOp, reason: str) -> CommitError:
        return CommitError(
            CommitErrorKind.CONDITION_FAILED,
            f"Write #{index} ({describe(op)}) rejected: {reason}",
            index=index,
            op=op,
        )

    @staticmethod
    def backend(message: str, cause: Exception | None = None) -> CommitError:
        return CommitError(CommitErrorKind.BACKEND, message, cause=cause)


# ═══════════════════════════════════════════════════════════════════════════════
# Repository Protocol: Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class Repository(Protocol):
    """
    Order repository protocol.

    Example — custom implementation:

        class DynamoRepository:
            async def find_pending(self, account_id: str) -> Result[Order | None, StoreError]:
                try:
                    ...query ORDER by account, status = PENDING, newest first, limit 1...
                    return Ok(order)
                except Exception as e:
                    return Error(StoreError("Failed to query", e))

            async def commit(self, writes: WriteSet) -> Result[None, CommitError]:
                ...one transactional write with a condition per op...
    """

    async def find_pending(self, account_id: str) -> Result[Order | None, StoreError]:
        """Newest PENDING order of the account. Ok(None) if there is none."""
        ...

    async def commit(self, writes: WriteSet) -> Result[None, CommitError]:
        """
        Apply every op or none.

        Must check each op's precondition inside the same atomic unit.
        """
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store: For Testing
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class _StoredOrder:
    """Internal order row for MemoryStore. Items are referenced by key."""

    id: str
    account_id: str
    status: OrderStatus
    shipping_address: ShippingAddress
    item_keys: tuple[ItemKey, ...]
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def from_order(order: Order) -> _StoredOrder:
        return _StoredOrder(
            id=order.id,
            account_id=order.account_id,
            status=order.status,
            shipping_address=order.shipping_address,
            item_keys=order.item_keys,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def to_order(self, items: dict[ItemKey, InventoryItem]) -> Order:
        return Order(
            id=self.id,
            account_id=self.account_id,
            status=self.status,
            shipping_address=self.shipping_address,
            items=tuple(items[key] for key in self.item_keys),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class MemoryStore:
    """
    In-memory order repository.

    Note: Only for single-process use and tests. Commits are serialised by
    a lock and validated against a staged copy before anything is applied.
    """

    def __init__(self) -> None:
        self._orders: dict[str, _StoredOrder] = {}
        self._items: dict[ItemKey, InventoryItem] = {}
        self._lock = asyncio.Lock()
        self.commits = 0

    # ── seeding / inspection ────────────────────────────────────────────────

    def put_item(self, *items: InventoryItem) -> None:
        for item in items:
            self._items[item.key] = item

    def put_order(self, order: Order) -> None:
        self.put_item(*order.items)
        self._orders[order.id] = _StoredOrder.from_order(order)

    def get_item(self, key: ItemKey) -> InventoryItem | None:
        return self._items.get(key)

    def get_order(self, order_id: str) -> Order | None:
        row = self._orders.get(order_id)
        return row.to_order(self._items) if row else None

    def orders_for(self, account_id: str) -> list[Order]:
        rows = sorted(
            (row for row in self._orders.values() if row.account_id == account_id),
            key=lambda row: (row.created_at, row.id),
        )
        return [row.to_order(self._items) for row in rows]

    # ── Repository ──────────────────────────────────────────────────────────

    async def find_pending(self, account_id: str) -> Result[Order | None, StoreError]:
        async with self._lock:
            pending = [
                row
                for row in self._orders.values()
                if row.account_id == account_id and row.status == OrderStatus.PENDING
            ]
            if not pending:
                return Ok(None)
            newest = max(pending, key=lambda row: (row.created_at, row.id))
            return Ok(newest.to_order(self._items))

    async def commit(self, writes: WriteSet) -> Result[None, CommitError]:
        async with self._lock:
            orders = dict(self._orders)
            items = dict(self._items)

            for index, op in enumerate(writes):
                reason = _apply(op, orders, items)
                if reason is not None:
                    return Error(CommitError.condition_failed(index, op, reason))

            self._orders = orders
            self._items = items
            self.commits += 1
            return Ok(None)


def _apply(
    op: WriteOp,
    orders: dict[str, _StoredOrder],
    items: dict[ItemKey, InventoryItem],
) -> str | None:
    """Apply op to the staged maps. Returns the failure reason, or None."""
    match op:
        case ItemUpdate():
            item = items.get(op.key)
            if item is None:
                return "item does not exist"
            if item.status != op.expected:
                return f"item is {item.status.value}"
            items[op.key] = replace(item, status=op.status, updated_at=op.updated_at)
            return None

        case OrderUpdate():
            row = orders.get(op.order_id)
            if row is None:
                return "order does not exist"
            if row.status != op.expected:
                return f"order is {row.status.value}"
            if len(row.item_keys) != op.expected_count:
                return f"order holds {len(row.item_keys)} items"
            orders[op.order_id] = replace(
                row,
                status=op.status,
                item_keys=row.item_keys + op.append,
                updated_at=op.updated_at,
            )
            return None

        case OrderCreate():
            order = op.order
            if order.id in orders:
                return "order id already exists"
            if order.status == OrderStatus.PENDING and any(
                row.account_id == order.account_id and row.status == OrderStatus.PENDING
                for row in orders.values()
            ):
                return "account already has a pending order"
            orders[order.id] = _StoredOrder.from_order(order)
            return None


__all__ = (
    "StoreError",
    "CommitErrorKind",
    "CommitError",
    "Repository",
    "MemoryStore",
)
