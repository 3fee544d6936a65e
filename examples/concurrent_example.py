"""
Concurrent withdrawals — several callers racing on one pending order.

Exactly one filler wins each race; losers get CONCURRENT_MODIFICATION
and retry against fresh state.

Run: uv run python -m examples.concurrent_example
"""

from combinators import batch, lift as L
from kungfu import Ok, Error

from withdrawals import MemoryStore, MonotonicUlid, WithdrawalService
from withdrawals.domain import InventoryItem, OrderStatus
from withdrawals.withdraw import Withdrawal
from examples._infra import ALICE, banner, make_items, run

MAX_ATTEMPTS = 5


async def main() -> None:
    banner("Concurrent withdrawals (5 callers × 4 items)")

    store = MemoryStore()
    service = WithdrawalService(store, MonotonicUlid())

    batches = [make_items(ALICE, 4, start=n * 4) for n in range(5)]
    for items in batches:
        store.put_item(*items)

    async def withdraw_with_retry(items: list[InventoryItem]) -> Withdrawal:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            match await service.withdraw(ALICE, items):
                case Ok(w):
                    print(f"   attempt {attempt}: committed {w.order_ids}")
                    return w
                case Error(e) if e.retryable:
                    print(f"   attempt {attempt}: lost race, retrying")
                case Error(e):
                    raise RuntimeError(e.message)
        raise RuntimeError("gave up after retries")

    await batch(
        batches,
        handler=lambda items: L.catching_async(
            lambda: withdraw_with_retry(items),
            on_error=str,
        ),
        concurrency=5,
    )

    banner("Orders")
    for order in store.orders_for(ALICE.id):
        print(f"   {order.id}  {order.status.value:<10} {order.item_count} items")
    pending = [o for o in store.orders_for(ALICE.id) if o.status == OrderStatus.PENDING]
    print(f"\nPending orders: {len(pending)}")


if __name__ == "__main__":
    run(main)
