"""
Withdrawal service — assign items to orders in one atomic write.

    find_pending ──► plan ──► mint ids ──► stage ──► commit
         │             │                              │
     STORE_ERROR   TOO_MANY_ITEMS           CONCURRENT_MODIFICATION
                   MISSING_SHIPPING_ADDRESS

No retries here: a lost race means the plan is stale. Callers re-read
state and call withdraw() again.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

import structlog
from kungfu import Result, Ok, Error

from withdrawals._policy import Policy
from withdrawals.domain import (
    Account,
    InventoryItem,
    Order,
    WithdrawError,
    WithdrawErrors,
)
from withdrawals.ids import IdSource
from withdrawals.plan import Plan, check_batch_size, plan
from withdrawals.store import CommitError, CommitErrorKind, Repository
from withdrawals.writes import Staged, stage
from withdrawals.withdraw._types import Withdrawal

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _duplicate_keys(items: Sequence[InventoryItem]) -> list[str]:
    counts = Counter(item.key for item in items)
    return sorted(str(key) for key, count in counts.items() if count > 1)


def _from_commit_error(error: CommitError) -> WithdrawError:
    match error.kind:
        case CommitErrorKind.CONDITION_FAILED:
            return WithdrawErrors.concurrent_modification(error.message, error.op)
        case CommitErrorKind.BACKEND:
            return WithdrawErrors.store_error(error.message, error.cause)


# ═══════════════════════════════════════════════════════════════════════════════
# Withdrawal Service
# ═══════════════════════════════════════════════════════════════════════════════


class WithdrawalService:
    """
    Withdraw inventory items into shipping orders.

    Example:
        store = MemoryStore()
        service = WithdrawalService(store, MonotonicUlid())

        match await service.withdraw(account, items):
            case Ok(w):
                for batch in w.orders:
                    print(batch.order.id, batch.order.status, len(batch.items))
            case Error(e) if e.retryable:
                ...  # re-read items, call withdraw() again
            case Error(e):
                ...
    """

    def __init__(
        self,
        repository: Repository,
        ids: IdSource,
        policy: Policy | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._ids = ids
        self._policy = policy or Policy()
        self._clock = clock

    @property
    def policy(self) -> Policy:
        return self._policy

    async def withdraw(
        self,
        account: Account,
        items: Sequence[InventoryItem],
    ) -> Result[Withdrawal, WithdrawError]:
        """
        Assign items to the account's pending order and new orders.

        Returns Ok(Withdrawal) once the atomic write has committed.
        On Error nothing was written.
        """
        log = logger.bind(account_id=account.id, item_count=len(items))

        match self._validate(items):
            case Error(e):
                log.info("withdraw.rejected", reason=e.kind.name)
                return Error(e)
            case _:
                pass

        match await self._repository.find_pending(account.id):
            case Ok(pending):
                existing: Order | None = pending
            case Error(store_error):
                log.error("withdraw.lookup_failed", error=store_error.message)
                return Error(WithdrawErrors.store_error(store_error.message, store_error.cause))

        match plan(existing, items, self._policy):
            case Ok(p):
                batching: Plan = p
            case Error(e):
                log.info("withdraw.rejected", reason=e.kind.name)
                return Error(e)

        if batching.creates_orders and account.shipping_address is None:
            e = WithdrawErrors.missing_shipping_address(account.id)
            log.info("withdraw.rejected", reason=e.kind.name)
            return Error(e)

        staged = self._stage(batching, account)
        log.info(
            "withdraw.planned",
            pending_order_id=existing.id if existing else None,
            filled=len(batching.fill.items) if batching.fill else 0,
            new_orders=len(batching.new_orders),
            writes=len(staged.writes),
        )

        if staged.is_empty:
            return Ok(Withdrawal(orders=(), account=account))

        match await self._repository.commit(staged.writes):
            case Ok(_):
                pass
            case Error(commit_error):
                e = _from_commit_error(commit_error)
                log.warning("withdraw.rejected", reason=e.kind.name, detail=e.message)
                return Error(e)

        result = Withdrawal(orders=staged.batches, account=account)
        log.info("withdraw.committed", order_ids=list(result.order_ids))
        return Ok(result)

    def _validate(self, items: Sequence[InventoryItem]) -> Result[None, WithdrawError]:
        match check_batch_size(items, self._policy):
            case Error(e):
                return Error(e)
            case _:
                pass

        duplicates = _duplicate_keys(items)
        if duplicates:
            return Error(WithdrawErrors.duplicate_items(duplicates))
        return Ok(None)

    def _stage(self, batching: Plan, account: Account) -> Staged:
        now = self._clock()
        seed_ms = int(now.timestamp() * 1000)
        order_ids = [self._ids(seed_ms) for _ in batching.new_orders]
        return stage(batching, account, order_ids, now)


__all__ = ("WithdrawalService",)
