"""Tests for SQLAlchemyStore on SQLite (aiosqlite)."""

from dataclasses import replace
from datetime import timedelta, timezone

import pytest
from sqlalchemy import update

from withdrawals import (
    ItemStatus,
    MonotonicUlid,
    OrderStatus,
    SQLAlchemyStore,
    WithdrawalService,
    WithdrawErrorKind,
    create_database,
)
from withdrawals.store import CommitErrorKind, OrderTable
from withdrawals.writes import ItemUpdate, OrderCreate, OrderUpdate

from tests.helpers import NOW, RacingRepository, account, err, items, ok, pending_order, run


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'withdrawals.db'}"


def with_database(url, body):
    """Run `body(store, session_factory)` against a fresh database inside one event loop."""

    async def scenario():
        session_factory, engine = await create_database(url)
        try:
            await body(SQLAlchemyStore(session_factory), session_factory)
        finally:
            await engine.dispose()

    run(scenario())


def with_store(url, body):
    """Run `body(store)` against a fresh database inside one event loop."""

    async def store_only(store, _session_factory):
        await body(store)

    with_database(url, store_only)


async def set_order_status(session_factory, order_id, status):
    async with session_factory() as session, session.begin():
        await session.execute(
            update(OrderTable).where(OrderTable.id == order_id).values(status=status.value)
        )


class TestFindPending:
    def test_none_when_empty(self, db_url):
        async def body(store):
            assert ok(await store.find_pending("acct-1")) is None

        with_store(db_url, body)

    def test_loads_order_with_items_in_position_order(self, db_url):
        async def body(store):
            order = pending_order(4)
            await store.add_order(order)

            found = ok(await store.find_pending("acct-1"))

            assert found.id == order.id
            assert found.status == OrderStatus.PENDING
            assert found.shipping_address == order.shipping_address
            assert found.item_keys == order.item_keys

        with_store(db_url, body)

    def test_skips_non_pending(self, db_url):
        async def body(store):
            await store.add_order(pending_order(15, status=OrderStatus.PROCESSING))
            assert ok(await store.find_pending("acct-1")) is None

        with_store(db_url, body)

    def test_in_memory_url(self):
        async def body(store):
            assert ok(await store.find_pending("acct-1")) is None

        with_store("sqlite+aiosqlite:///:memory:", body)


class TestWithdrawOnSQL:
    def test_fill_and_create(self, db_url):
        async def body(store):
            existing = pending_order(12)
            await store.add_order(existing)
            batch = items(5)
            await store.add_items(*batch)
            service = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            w = ok(await service.withdraw(account(), batch))

            filled, created = w.orders
            stored = await store.get_order(existing.id)
            assert stored.status == OrderStatus.PROCESSING
            assert stored.item_count == 15
            assert stored.item_keys[12:] == tuple(i.key for i in batch[:3])
            stored_new = await store.get_order(created.order.id)
            assert stored_new.status == OrderStatus.PENDING
            assert stored_new.item_keys == tuple(i.key for i in batch[3:])
            for i in batch:
                assert (await store.get_item(i.key)).status == ItemStatus.WITHDRAWING

        with_store(db_url, body)

    def test_32_items(self, db_url):
        async def body(store):
            batch = items(32)
            await store.add_items(*batch)
            service = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            ok(await service.withdraw(account(), batch))

            orders = await store.orders_for("acct-1")
            assert [o.item_count for o in orders] == [15, 15, 2]
            assert [o.status for o in orders] == [
                OrderStatus.PROCESSING,
                OrderStatus.PROCESSING,
                OrderStatus.PENDING,
            ]

        with_store(db_url, body)

    def test_lost_race_rolls_back(self, db_url):
        async def body(store):
            batch = items(3)
            await store.add_items(*batch[:2], replace(batch[2], status=ItemStatus.WITHDRAWING))
            service = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            e = err(await service.withdraw(account(), batch))

            assert e.kind is WithdrawErrorKind.CONCURRENT_MODIFICATION
            assert await store.orders_for("acct-1") == []
            assert (await store.get_item(batch[0].key)).status == ItemStatus.UNFULFILLED
            assert (await store.get_item(batch[1].key)).status == ItemStatus.UNFULFILLED

        with_store(db_url, body)


class TestCommitGuards:
    def test_second_pending_order_rejected_by_index(self, db_url):
        async def body(store):
            await store.add_order(pending_order(2, order_id="A"))
            (item,) = items(1)
            await store.add_items(item)
            created = replace(
                pending_order(0, order_id="B"),
                items=(replace(item, status=ItemStatus.WITHDRAWING),),
            )

            e = err(
                await store.commit(
                    (
                        OrderCreate(created),
                        ItemUpdate(item.key, ItemStatus.UNFULFILLED, ItemStatus.WITHDRAWING, NOW),
                    )
                )
            )

            assert e.kind is CommitErrorKind.CONDITION_FAILED
            assert e.index == 0
            assert await store.get_order("B") is None
            assert (await store.get_item(item.key)).status == ItemStatus.UNFULFILLED

        with_store(db_url, body)

    def test_duplicate_order_id_rejected(self, db_url):
        async def body(store):
            await store.add_order(pending_order(15, order_id="A", status=OrderStatus.PROCESSING))

            e = err(
                await store.commit(
                    (OrderCreate(pending_order(0, order_id="A", status=OrderStatus.PROCESSING)),)
                )
            )

            assert e.kind is CommitErrorKind.CONDITION_FAILED

        with_store(db_url, body)

    def test_processing_orders_do_not_conflict(self, db_url):
        async def body(store):
            await store.add_order(pending_order(15, order_id="A", status=OrderStatus.PROCESSING))
            await store.add_order(pending_order(2, order_id="B", created_at=NOW, item_start=8000))

            orders = await store.orders_for("acct-1")

            assert [o.id for o in orders] == ["A", "B"]

        with_store(db_url, body)


class TestOrderUpdateGuard:
    def test_pending_order_cancelled_before_commit(self, db_url):
        async def body(store, session_factory):
            existing = pending_order(10)
            await store.add_order(existing)
            batch = items(2)
            await store.add_items(*batch)

            async def cancel():
                await set_order_status(session_factory, existing.id, OrderStatus.CANCELLED)

            service = WithdrawalService(
                RacingRepository(store, cancel), MonotonicUlid(), clock=lambda: NOW
            )

            e = err(await service.withdraw(account(), batch))

            assert e.kind is WithdrawErrorKind.CONCURRENT_MODIFICATION
            assert isinstance(e.detail, OrderUpdate)
            stored = await store.get_order(existing.id)
            assert stored.status == OrderStatus.CANCELLED
            assert stored.item_keys == existing.item_keys
            for i in batch:
                assert (await store.get_item(i.key)).status == ItemStatus.UNFULFILLED

        with_database(db_url, body)

    def test_stale_item_count_loses_to_earlier_filler(self, db_url):
        async def body(store):
            existing = pending_order(10)
            await store.add_order(existing)
            mine = items(2)
            theirs = items(3, start=50)
            await store.add_items(*mine, *theirs)
            rival = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            async def rival_fills_first():
                ok(await rival.withdraw(account(), theirs))

            service = WithdrawalService(
                RacingRepository(store, rival_fills_first), MonotonicUlid(), clock=lambda: NOW
            )

            e = err(await service.withdraw(account(), mine))

            assert e.kind is WithdrawErrorKind.CONCURRENT_MODIFICATION
            assert isinstance(e.detail, OrderUpdate)
            assert e.detail.expected_count == 10
            stored = await store.get_order(existing.id)
            assert stored.status == OrderStatus.PENDING
            assert stored.item_keys == existing.item_keys + tuple(i.key for i in theirs)
            for i in mine:
                assert (await store.get_item(i.key)).status == ItemStatus.UNFULFILLED

            # Retry with fresh reads.
            ok(await service.withdraw(account(), mine))
            assert (await store.get_order(existing.id)).item_count == 15

        with_store(db_url, body)


class TestReleasedItems:
    def test_item_from_cancelled_order_is_withdrawn_again(self, db_url):
        async def body(store):
            released = items(3, start=9000)
            cancelled = replace(
                pending_order(0, order_id="C", status=OrderStatus.CANCELLED),
                items=tuple(released),
            )
            await store.add_order(cancelled)
            service = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            w = ok(await service.withdraw(account(), released))

            (batch,) = w.orders
            stored = await store.get_order(batch.order.id)
            assert stored.status == OrderStatus.PENDING
            assert stored.item_keys == cancelled.item_keys
            assert all(i.status == ItemStatus.WITHDRAWING for i in stored.items)
            assert (await store.get_order("C")).item_keys == cancelled.item_keys

        with_store(db_url, body)


class TestDatetimes:
    def test_loaded_order_equals_stored_order(self, db_url):
        async def body(store):
            order = pending_order(3)
            await store.add_order(order)

            found = ok(await store.find_pending("acct-1"))

            assert found == order
            assert found.created_at.tzinfo is not None
            assert all(i.updated_at.tzinfo is not None for i in found.items)

        with_store(db_url, body)

    def test_offset_timestamps_come_back_as_utc(self, db_url):
        async def body(store):
            local = NOW.astimezone(timezone(timedelta(hours=2)))
            order = replace(pending_order(1), created_at=local, updated_at=local)
            await store.add_order(order)

            stored = await store.get_order(order.id)

            assert stored.created_at == NOW
            assert stored.created_at.utcoffset() == timedelta(0)

        with_store(db_url, body)

    def test_committed_timestamps_are_aware(self, db_url):
        async def body(store):
            batch = items(2)
            await store.add_items(*batch)
            service = WithdrawalService(store, MonotonicUlid(), clock=lambda: NOW)

            w = ok(await service.withdraw(account(), batch))

            stored = await store.get_order(w.orders[0].order.id)
            assert stored == w.orders[0].order

        with_store(db_url, body)
