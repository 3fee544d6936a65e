"""
SQLAlchemy store — same withdrawals, persisted in SQLite.

Run: uv run python -m examples.sqlalchemy_example
"""

from kungfu import Ok, Error

from withdrawals import (
    MonotonicUlid,
    Settings,
    SQLAlchemyStore,
    WithdrawalService,
    configure_logging,
    create_database,
)
from examples._infra import ALICE, banner, make_items, run


async def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)

    session_factory, engine = await create_database(settings.database_url)
    store = SQLAlchemyStore(session_factory)
    service = WithdrawalService(store, MonotonicUlid(), settings.policy())

    try:
        banner("Withdraw 32 items")
        items = make_items(ALICE, 32)
        await store.add_items(*items)

        match await service.withdraw(ALICE, items):
            case Ok(w):
                for batch in w.orders:
                    print(f"   {batch.order.id}  {batch.order.status.value:<10} {len(batch.items)} items")
            case Error(e):
                print(f"   Error: {e.kind.name} {e.message}")

        banner("Stored orders")
        for order in await store.orders_for(ALICE.id):
            print(f"   {order.id}  {order.status.value:<10} {order.item_count} items")

    finally:
        await engine.dispose()


if __name__ == "__main__":
    run(main)
