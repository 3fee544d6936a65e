"""
Domain types — accounts, inventory items, orders.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Statuses
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(str, Enum):
    """
    Order lifecycle.

        PENDING → PROCESSING → SHIPPED
            └───────┴──────→ CANCELLED

    Note: Only PENDING → PROCESSING happens here. The rest is fulfillment.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"


class ItemStatus(str, Enum):
    """
    Inventory item lifecycle.

        UNFULFILLED → WITHDRAWING → WITHDRAWN

    Note: WITHDRAWING is written on assignment to an order.
    WITHDRAWN is written by fulfillment once the order ships.
    """

    UNFULFILLED = "UNFULFILLED"
    WITHDRAWING = "WITHDRAWING"
    WITHDRAWN = "WITHDRAWN"


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping Address: copied into orders at creation
# ═══════════════════════════════════════════════════════════════════════════════


_REQUIRED_ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "address_line1",
    "locality",
    "region",
    "postal_code",
    "country",
)


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    first_name: str
    last_name: str
    address_line1: str
    locality: str
    region: str
    postal_code: str
    country: str
    address_line2: str | None = None
    phone_number: str | None = None
    country_code: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "locality": self.locality,
            "region": self.region,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone_number": self.phone_number,
            "country_code": self.country_code,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShippingAddress:
        missing = [name for name in _REQUIRED_ADDRESS_FIELDS if not data.get(name)]
        if missing:
            raise ValueError(f"Shipping address is missing: {', '.join(missing)}")
        return cls(
            first_name=data["first_name"],
            last_name=data["last_name"],
            address_line1=data["address_line1"],
            address_line2=data.get("address_line2"),
            locality=data["locality"],
            region=data["region"],
            postal_code=data["postal_code"],
            country=data["country"],
            phone_number=data.get("phone_number"),
            country_code=data.get("country_code"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Account
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Account:
    id: str
    shipping_address: ShippingAddress | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Inventory Item
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, order=True)
class ItemKey:
    """Composite item identity (partition key, sort key)."""

    pk: str
    sk: str

    def __str__(self) -> str:
        return f"{self.pk}/{self.sk}"


@dataclass(frozen=True, slots=True)
class InventoryItem:
    key: ItemKey
    status: ItemStatus
    created_at: datetime
    updated_at: datetime
    exchange_add_tx_id: str | None = None
    exchange_remove_tx_id: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    """
    A shipping order.

    Note: items is ordered — appended batches keep their arrival order.
    shipping_address is a snapshot taken at creation and never changes.
    """

    id: str
    account_id: str
    status: OrderStatus
    shipping_address: ShippingAddress
    items: tuple[InventoryItem, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def item_keys(self) -> tuple[ItemKey, ...]:
        return tuple(item.key for item in self.items)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "OrderStatus",
    "ItemStatus",
    "ShippingAddress",
    "Account",
    "ItemKey",
    "InventoryItem",
    "Order",
)
