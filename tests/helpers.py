"""Factories and Result helpers shared by the test modules."""

import asyncio
from collections.abc import Coroutine
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from kungfu import Error, Ok

from withdrawals import (
    Account,
    InventoryItem,
    ItemKey,
    ItemStatus,
    Order,
    OrderStatus,
    ShippingAddress,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
EARLIER = NOW - timedelta(days=1)

ADDRESS = ShippingAddress(
    first_name="Grace",
    last_name="Hopper",
    address_line1="1 Navy Way",
    locality="Arlington",
    region="VA",
    postal_code="22201",
    country="US",
    phone_number="+1 555 0100",
)


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


def ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got Error({e!r})")


def err(result):
    match result:
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")
        case Error(e):
            return e


def account(account_id: str = "acct-1", address: ShippingAddress | None = ADDRESS) -> Account:
    return Account(account_id, address)


def items(
    count: int,
    *,
    owner: str = "acct-1",
    start: int = 0,
    status: ItemStatus = ItemStatus.UNFULFILLED,
) -> list[InventoryItem]:
    return [
        InventoryItem(
            key=ItemKey(owner, f"item#{n:04d}"),
            status=status,
            created_at=EARLIER,
            updated_at=EARLIER,
        )
        for n in range(start, start + count)
    ]


def pending_order(
    count: int,
    *,
    order_id: str = "01EXISTINGPENDING000000000",
    owner: str = "acct-1",
    status: OrderStatus = OrderStatus.PENDING,
    created_at: datetime = EARLIER,
    item_start: int = 9000,
) -> Order:
    """An order holding `count` already-withdrawing items numbered from `item_start`."""
    return Order(
        id=order_id,
        account_id=owner,
        status=status,
        shipping_address=ADDRESS,
        items=tuple(items(count, owner=owner, start=item_start, status=ItemStatus.WITHDRAWING)),
        created_at=created_at,
        updated_at=created_at,
    )


class RacingRepository:
    """Runs `interfere` between the caller's lookup and its commit."""

    def __init__(self, inner, interfere):
        self.inner = inner
        self.interfere = interfere
        self.raced = False

    async def find_pending(self, account_id):
        return await self.inner.find_pending(account_id)

    async def commit(self, writes):
        if not self.raced:
            self.raced = True
            await self.interfere()
        return await self.inner.commit(writes)
