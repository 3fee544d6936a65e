"""
SQLAlchemy integration — order repository over an async session factory.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///orders.db")
    store = SQLAlchemyStore(session_factory)

    service = WithdrawalService(store, MonotonicUlid())

Tables:
    orders           — one row per order, item_count kept as a version guard
    order_items      — (order_id, position) → item key
    inventory_items  — item status and timestamps

One pending order per account is enforced by a partial unique index.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, cast

import structlog
from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    and_,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from kungfu import Result, Ok, Error

from withdrawals.domain import (
    InventoryItem,
    ItemKey,
    ItemStatus,
    Order,
    OrderStatus,
    ShippingAddress,
)
from withdrawals.store._store import CommitError, StoreError
from withdrawals.writes import ItemUpdate, OrderCreate, OrderUpdate, WriteOp, WriteSet

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class InventoryItemTable(Base):
    __tablename__ = "inventory_items"

    pk: Mapped[str] = mapped_column(String(100), primary_key=True)
    sk: Mapped[str] = mapped_column(String(100), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    exchange_add_tx_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    exchange_remove_tx_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


_PENDING_ONLY = text("status = 'PENDING'")


class OrderTable(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index(
            "uq_orders_pending_account",
            "account_id",
            unique=True,
            sqlite_where=_PENDING_ONLY,
            postgresql_where=_PENDING_ONLY,
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    account_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    item_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shipping_address: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderItemTable(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["item_pk", "item_sk"],
            ["inventory_items.pk", "inventory_items.sk"],
        ),
    )

    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_pk: Mapped[str] = mapped_column(String(100), nullable=False)
    item_sk: Mapped[str] = mapped_column(String(100), nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Row ↔ Domain
# ═══════════════════════════════════════════════════════════════════════════════


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(UTC)


def _from_db(value: datetime) -> datetime:
    # SQLite hands back naive values; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_item(row: InventoryItemTable) -> InventoryItem:
    return InventoryItem(
        key=ItemKey(row.pk, row.sk),
        status=ItemStatus(row.status),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
        exchange_add_tx_id=row.exchange_add_tx_id,
        exchange_remove_tx_id=row.exchange_remove_tx_id,
    )


def _item_values(item: InventoryItem) -> dict[str, Any]:
    return {
        "pk": item.key.pk,
        "sk": item.key.sk,
        "status": item.status.value,
        "exchange_add_tx_id": item.exchange_add_tx_id,
        "exchange_remove_tx_id": item.exchange_remove_tx_id,
        "created_at": _to_utc(item.created_at),
        "updated_at": _to_utc(item.updated_at),
    }


def _to_order(row: OrderTable, items: list[InventoryItem]) -> Order:
    return Order(
        id=row.id,
        account_id=row.account_id,
        status=OrderStatus(row.status),
        shipping_address=ShippingAddress.from_dict(row.shipping_address),
        items=tuple(items),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
    )


def _order_values(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "account_id": order.account_id,
        "status": order.status.value,
        "item_count": order.item_count,
        "shipping_address": order.shipping_address.to_dict(),
        "created_at": _to_utc(order.created_at),
        "updated_at": _to_utc(order.updated_at),
    }


def _link_values(order_id: str, start: int, keys: tuple[ItemKey, ...]) -> list[dict[str, Any]]:
    return [
        {"order_id": order_id, "position": start + offset, "item_pk": key.pk, "item_sk": key.sk}
        for offset, key in enumerate(keys)
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Rejection: raised inside the transaction to force rollback
# ═══════════════════════════════════════════════════════════════════════════════


class _Rejected(Exception):
    def __init__(self, index: int, op: WriteOp, reason: str) -> None:
        super().__init__(reason)
        self.index = index
        self.op = op
        self.reason = reason


def _rowcount(result: Any) -> int:
    return cast(CursorResult[Any], result).rowcount


# ═══════════════════════════════════════════════════════════════════════════════
# SQLAlchemy Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """
    Order repository on SQLAlchemy 2.0 async.

    commit() runs every op in one transaction:
    - ItemUpdate / OrderUpdate: UPDATE ... WHERE <expected state>, rowcount must be 1
    - OrderCreate: INSERT, guarded by primary key and pending-per-account index
    An item may appear in several orders over time (e.g. after a cancellation);
    only the item status precondition decides whether it can be withdrawn.
    Any rejection raises inside the transaction, which rolls everything back.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ── Repository ──────────────────────────────────────────────────────────

    async def find_pending(self, account_id: str) -> Result[Order | None, StoreError]:
        """Newest PENDING order for the account."""
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(OrderTable)
                    .where(
                        OrderTable.account_id == account_id,
                        OrderTable.status == OrderStatus.PENDING.value,
                    )
                    .order_by(OrderTable.created_at.desc(), OrderTable.id.desc())
                    .limit(1)
                )
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    return Ok(None)

                items = await self._load_items(session, row.id)
                return Ok(_to_order(row, items))

        except Exception as e:
            return Error(StoreError(f"Failed to find pending order: {e}", e))

    async def commit(self, writes: WriteSet) -> Result[None, CommitError]:
        """Apply all ops atomically."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for index, op in enumerate(writes):
                        reason = await self._apply(session, op)
                        if reason is not None:
                            raise _Rejected(index, op, reason)

        except _Rejected as r:
            logger.info("commit.rejected", index=r.index, reason=r.reason)
            return Error(CommitError.condition_failed(r.index, r.op, r.reason))
        except Exception as e:
            logger.error("commit.failed", error=str(e))
            return Error(CommitError.backend(f"Failed to commit: {e}", e))

        return Ok(None)

    # ── seeding / inspection ────────────────────────────────────────────────

    async def add_items(self, *items: InventoryItem) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    insert(InventoryItemTable), [_item_values(item) for item in items]
                )

    async def add_order(self, order: Order) -> None:
        """Insert an order together with its items (items must not exist yet)."""
        async with self._session_factory() as session:
            async with session.begin():
                if order.items:
                    await session.execute(
                        insert(InventoryItemTable), [_item_values(item) for item in order.items]
                    )
                await session.execute(insert(OrderTable).values(**_order_values(order)))
                if order.items:
                    await session.execute(
                        insert(OrderItemTable), _link_values(order.id, 0, order.item_keys)
                    )

    async def get_order(self, order_id: str) -> Order | None:
        async with self._session_factory() as session:
            row = await session.get(OrderTable, order_id)
            if row is None:
                return None
            return _to_order(row, await self._load_items(session, order_id))

    async def get_item(self, key: ItemKey) -> InventoryItem | None:
        async with self._session_factory() as session:
            row = await session.get(InventoryItemTable, (key.pk, key.sk))
            return _to_item(row) if row else None

    async def orders_for(self, account_id: str) -> list[Order]:
        async with self._session_factory() as session:
            stmt = (
                select(OrderTable)
                .where(OrderTable.account_id == account_id)
                .order_by(OrderTable.created_at, OrderTable.id)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_order(row, await self._load_items(session, row.id)) for row in rows]

    # ── internals ───────────────────────────────────────────────────────────

    async def _load_items(self, session: AsyncSession, order_id: str) -> list[InventoryItem]:
        stmt = (
            select(InventoryItemTable)
            .join(
                OrderItemTable,
                and_(
                    OrderItemTable.item_pk == InventoryItemTable.pk,
                    OrderItemTable.item_sk == InventoryItemTable.sk,
                ),
            )
            .where(OrderItemTable.order_id == order_id)
            .order_by(OrderItemTable.position)
        )
        rows = (await session.execute(stmt)).scalars().all()
        return [_to_item(row) for row in rows]

    async def _apply(self, session: AsyncSession, op: WriteOp) -> str | None:
        """Run one op. Returns the failure reason, or None."""
        match op:
            case ItemUpdate():
                stmt = (
                    update(InventoryItemTable)
                    .where(
                        InventoryItemTable.pk == op.key.pk,
                        InventoryItemTable.sk == op.key.sk,
                        InventoryItemTable.status == op.expected.value,
                    )
                    .values(status=op.status.value, updated_at=_to_utc(op.updated_at))
                    .execution_options(synchronize_session=False)
                )
                if _rowcount(await session.execute(stmt)) != 1:
                    return f"item is not {op.expected.value}"
                return None

            case OrderUpdate():
                stmt = (
                    update(OrderTable)
                    .where(
                        OrderTable.id == op.order_id,
                        OrderTable.status == op.expected.value,
                        OrderTable.item_count == op.expected_count,
                    )
                    .values(
                        status=op.status.value,
                        item_count=op.new_count,
                        updated_at=_to_utc(op.updated_at),
                    )
                    .execution_options(synchronize_session=False)
                )
                if _rowcount(await session.execute(stmt)) != 1:
                    return f"order is not {op.expected.value} with {op.expected_count} items"
                return await self._link(session, op.order_id, op.expected_count, op.append)

            case OrderCreate():
                order = op.order
                try:
                    await session.execute(insert(OrderTable).values(**_order_values(order)))
                except IntegrityError:
                    return "order id exists or account already has a pending order"
                return await self._link(session, order.id, 0, order.item_keys)

    async def _link(
        self,
        session: AsyncSession,
        order_id: str,
        start: int,
        keys: tuple[ItemKey, ...],
    ) -> str | None:
        if not keys:
            return None
        try:
            await session.execute(insert(OrderItemTable), _link_values(order_id, start, keys))
        except IntegrityError:
            return "order item link rejected"
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create database and return (session_factory, engine)."""
    if ":memory:" in url:
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "InventoryItemTable",
    "OrderTable",
    "OrderItemTable",
    "SQLAlchemyStore",
    "create_database",
)
