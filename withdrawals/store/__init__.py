"""
Store — order repositories.

    from withdrawals import store as S

    repo = S.MemoryStore()                       # tests / single process
    session_factory, engine = await S.create_database(url)
    repo = S.SQLAlchemyStore(session_factory)    # SQL backend
"""

from withdrawals.store._store import (
    StoreError,
    CommitErrorKind,
    CommitError,
    Repository,
    MemoryStore,
)
from withdrawals.store._sqlalchemy import (
    Base,
    InventoryItemTable,
    OrderTable,
    OrderItemTable,
    SQLAlchemyStore,
    create_database,
)

__all__ = (
    # Protocol & errors
    "StoreError",
    "CommitErrorKind",
    "CommitError",
    "Repository",
    # Memory
    "MemoryStore",
    # SQLAlchemy
    "Base",
    "InventoryItemTable",
    "OrderTable",
    "OrderItemTable",
    "SQLAlchemyStore",
    "create_database",
)
