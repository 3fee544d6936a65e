"""
Batching policy — order capacity and batch limits.
"""

from __future__ import annotations

from dataclasses import dataclass


# ═══════════════════════════════════════════════════════════════════════════════
# Defaults
# ═══════════════════════════════════════════════════════════════════════════════

ORDER_CAPACITY = 15
MAX_ITEMS_PER_WITHDRAWAL = 200


# ═══════════════════════════════════════════════════════════════════════════════
# Policy: Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Withdrawal batching policy.

    Fluent builder pattern — chain methods to configure.

    Example:
        policy = (
            Policy()
            .with_capacity(15)
            .with_max_items(200)
        )

    Note: Immutable — each method returns new Policy.

    capacity: items an order holds before it leaves PENDING.
    max_items: largest batch a single withdraw() call accepts.
    """

    capacity: int = ORDER_CAPACITY
    max_items: int = MAX_ITEMS_PER_WITHDRAWAL

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")
        if self.max_items < 0:
            raise ValueError(f"max_items must be >= 0, got {self.max_items}")

    def with_capacity(self, capacity: int) -> Policy:
        """
        Set order capacity.

        Example:
            .with_capacity(15)
        """
        return Policy(capacity=capacity, max_items=self.max_items)

    def with_max_items(self, max_items: int) -> Policy:
        """
        Set per-call batch limit.

        Example:
            .with_max_items(200)
        """
        return Policy(capacity=self.capacity, max_items=max_items)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ORDER_CAPACITY",
    "MAX_ITEMS_PER_WITHDRAWAL",
    "Policy",
)
