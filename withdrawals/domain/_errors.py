"""
Withdrawal errors.

Expected failures travel as values inside Result.
Broken invariants in stored state raise ConsistencyFault.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Error Kinds
# ═══════════════════════════════════════════════════════════════════════════════


class WithdrawErrorKind(Enum):
    """Kinds of withdrawal errors."""

    TOO_MANY_ITEMS = auto()  # Batch over the policy limit
    DUPLICATE_ITEMS = auto()  # Same item key passed twice
    MISSING_SHIPPING_ADDRESS = auto()  # New order needed, account has no address
    CONCURRENT_MODIFICATION = auto()  # A commit precondition failed
    STORE_ERROR = auto()  # Storage backend error


# ═══════════════════════════════════════════════════════════════════════════════
# Withdraw Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class WithdrawError:
    """
    Withdrawal failure.

    Note: detail carries the failing write op for CONCURRENT_MODIFICATION
    and the backend exception for STORE_ERROR.
    """

    kind: WithdrawErrorKind
    message: str
    detail: Any = None

    @property
    def retryable(self) -> bool:
        """True when re-reading state and calling withdraw() again may succeed."""
        return self.kind is WithdrawErrorKind.CONCURRENT_MODIFICATION


class WithdrawErrors:
    @staticmethod
    def too_many_items(count: int, limit: int) -> WithdrawError:
        return WithdrawError(
            WithdrawErrorKind.TOO_MANY_ITEMS,
            f"Cannot withdraw {count} items at once (limit {limit})",
        )

    @staticmethod
    def duplicate_items(keys: list[str]) -> WithdrawError:
        return WithdrawError(
            WithdrawErrorKind.DUPLICATE_ITEMS,
            f"Items passed more than once: {', '.join(keys)}",
            keys,
        )

    @staticmethod
    def missing_shipping_address(account_id: str) -> WithdrawError:
        return WithdrawError(
            WithdrawErrorKind.MISSING_SHIPPING_ADDRESS,
            f"Account {account_id} has no shipping address",
        )

    @staticmethod
    def concurrent_modification(msg: str, detail: Any = None) -> WithdrawError:
        return WithdrawError(WithdrawErrorKind.CONCURRENT_MODIFICATION, msg, detail)

    @staticmethod
    def store_error(msg: str, cause: Exception | None = None) -> WithdrawError:
        return WithdrawError(WithdrawErrorKind.STORE_ERROR, msg, cause)


# ═══════════════════════════════════════════════════════════════════════════════
# Consistency Fault: fatal
# ═══════════════════════════════════════════════════════════════════════════════


class ConsistencyFault(Exception):
    """
    Stored or computed state breaks an order invariant.

    Not a control-flow branch: nothing a caller does can recover from it.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


__all__ = (
    "WithdrawErrorKind",
    "WithdrawError",
    "WithdrawErrors",
    "ConsistencyFault",
)
