"""
Withdraw — batch items into orders with the in-memory store.

Run: uv run python -m examples.withdraw_example
"""

from kungfu import Ok, Error

from withdrawals import MemoryStore, MonotonicUlid, WithdrawalService, configure_logging
from examples._infra import ALICE, BOB, banner, make_items, run


async def main() -> None:
    configure_logging()
    store = MemoryStore()
    service = WithdrawalService(store, MonotonicUlid())

    # 1. 12 items → one PENDING order
    banner("1. Withdraw 12 items")
    first = make_items(ALICE, 12)
    store.put_item(*first)
    match await service.withdraw(ALICE, first):
        case Ok(w):
            for batch in w.orders:
                print(f"   {batch.order.id}  {batch.order.status.value:<10} {batch.order.item_count} items")
        case Error(e):
            print(f"   Error: {e.kind.name} {e.message}")

    # 2. 5 more → pending order fills to 15 and ships, 2 start a new order
    banner("2. Withdraw 5 more")
    second = make_items(ALICE, 5, start=12)
    store.put_item(*second)
    match await service.withdraw(ALICE, second):
        case Ok(w):
            for batch in w.orders:
                print(
                    f"   {batch.order.id}  {batch.order.status.value:<10} "
                    f"{batch.order.item_count} items (+{len(batch.items)})"
                )
        case Error(e):
            print(f"   Error: {e.kind.name} {e.message}")

    # 3. Replaying the same items loses on the item preconditions
    banner("3. Replay the same items")
    match await service.withdraw(ALICE, second):
        case Ok(_):
            print("   unexpected success")
        case Error(e):
            print(f"   {e.kind.name} (retryable={e.retryable})")

    # 4. No address, new order needed
    banner("4. Account without shipping address")
    items = make_items(BOB, 3)
    store.put_item(*items)
    match await service.withdraw(BOB, items):
        case Ok(_):
            print("   unexpected success")
        case Error(e):
            print(f"   {e.kind.name}: {e.message}")

    print(f"\nCommits: {store.commits}")


if __name__ == "__main__":
    run(main)
