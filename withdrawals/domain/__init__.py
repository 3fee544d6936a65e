"""
Domain — accounts, inventory items, orders and withdrawal errors.
"""

from withdrawals.domain._types import (
    OrderStatus,
    ItemStatus,
    ShippingAddress,
    Account,
    ItemKey,
    InventoryItem,
    Order,
)
from withdrawals.domain._errors import (
    WithdrawErrorKind,
    WithdrawError,
    WithdrawErrors,
    ConsistencyFault,
)

__all__ = (
    # Types
    "OrderStatus",
    "ItemStatus",
    "ShippingAddress",
    "Account",
    "ItemKey",
    "InventoryItem",
    "Order",
    # Errors
    "WithdrawErrorKind",
    "WithdrawError",
    "WithdrawErrors",
    "ConsistencyFault",
)
