"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime

from withdrawals import Account, InventoryItem, ItemKey, ItemStatus, ShippingAddress


# Fixtures
ADDRESS = ShippingAddress(
    first_name="Ada",
    last_name="Lovelace",
    address_line1="12 St James's Square",
    locality="London",
    region="Greater London",
    postal_code="SW1Y 4JH",
    country="GB",
)

ALICE = Account("acct_alice", ADDRESS)
BOB = Account("acct_bob", None)  # no shipping address


def make_items(account: Account, count: int, start: int = 0) -> list[InventoryItem]:
    now = datetime.now(UTC)
    return [
        InventoryItem(
            key=ItemKey(account.id, f"card#{n:04d}"),
            status=ItemStatus.UNFULFILLED,
            created_at=now,
            updated_at=now,
        )
        for n in range(start, start + count)
    ]


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
