"""
Withdraw — the withdrawal operation.

    from withdrawals.withdraw import WithdrawalService

    service = WithdrawalService(repository, ids, policy)
    result = await service.withdraw(account, items)
"""

from withdrawals.withdraw._types import Withdrawal
from withdrawals.withdraw._service import WithdrawalService

__all__ = (
    "Withdrawal",
    "WithdrawalService",
)
