"""
withdrawals — batch inventory withdrawals into shipping orders.

    from withdrawals import WithdrawalService, MemoryStore, MonotonicUlid

    service = WithdrawalService(MemoryStore(), MonotonicUlid())
    result = await service.withdraw(account, items)

Submodules:
    from withdrawals import plan as P     # Pure batching decisions
    from withdrawals import writes as W   # Conditioned write ops
    from withdrawals import store as S    # Repositories (memory, SQLAlchemy)
    from withdrawals import ids           # Monotonic order ids
"""

from withdrawals import domain
from withdrawals import plan
from withdrawals import writes
from withdrawals import store
from withdrawals import ids
from withdrawals._policy import Policy, ORDER_CAPACITY, MAX_ITEMS_PER_WITHDRAWAL
from withdrawals._logging import configure_logging
from withdrawals.config import Settings
from withdrawals.domain import (
    Account,
    InventoryItem,
    ItemKey,
    ItemStatus,
    Order,
    OrderStatus,
    ShippingAddress,
    WithdrawError,
    WithdrawErrorKind,
    ConsistencyFault,
)
from withdrawals.ids import MonotonicUlid
from withdrawals.store import MemoryStore, SQLAlchemyStore, create_database
from withdrawals.withdraw import Withdrawal, WithdrawalService

__version__ = "0.1.0"

__all__ = (
    "domain",
    "plan",
    "writes",
    "store",
    "ids",
    "Policy",
    "ORDER_CAPACITY",
    "MAX_ITEMS_PER_WITHDRAWAL",
    "configure_logging",
    "Settings",
    "Account",
    "InventoryItem",
    "ItemKey",
    "ItemStatus",
    "Order",
    "OrderStatus",
    "ShippingAddress",
    "WithdrawError",
    "WithdrawErrorKind",
    "ConsistencyFault",
    "MonotonicUlid",
    "MemoryStore",
    "SQLAlchemyStore",
    "create_database",
    "Withdrawal",
    "WithdrawalService",
)
