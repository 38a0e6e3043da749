"""Daily Reset Use Cases

ResetIfDue heals a single account on its first action of the day;
ResetAllDue sweeps every account that has not been reset yet. Both are
idempotent: the reset is a conditional UPDATE on last_reset_date, and the
reset event reference is unique per account and day.
"""

import logging
import time
from datetime import date
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.credit_account import CreditAccount
from src.domain.ledger_event import LedgerEvent, LedgerEventType
from .ensure_account import EnsureAccount
from .errors import ErrorCode, account_not_found
from .retry import RetryPolicy, run_with_retry
from .dtos import ResetResponseDTO, ResetSweepResultDTO

logger = logging.getLogger(__name__)


def reset_reference(as_of: date) -> str:
    return f"daily-reset-{as_of.isoformat()}"


class ResetIfDue:
    """
    Use Case: Reset one account's daily usage if not yet reset for as_of

    Business Rules:
    1. Only accounts with last_reset_date < as_of are reset
    2. A reset sets daily_used = 0, last_reset_date = as_of
    3. Each reset appends one reset event with amount 0
    4. Never creates accounts (ACCOUNT_NOT_FOUND)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.clock = clock
        self.retry_policy = retry_policy or RetryPolicy()

    async def apply(self, account: CreditAccount, as_of: date) -> Optional[CreditAccount]:
        """
        Reset inside the caller's transaction (no commit)

        Returns:
            The updated account if a reset happened, None if already reset
        """
        if account.last_reset_date >= as_of:
            return None

        now = self.clock.now()
        updated = await self.account_repo.reset_daily_usage(account.id, as_of, now)
        if updated is None:
            # A concurrent reset got there first
            return None

        await self.event_repo.create(
            LedgerEvent(
                user_id=updated.user_id,
                account_id=updated.id,
                event_type=LedgerEventType.RESET,
                amount=0,
                balance_after=updated.balance,
                description="Daily credit usage reset",
                reference=reset_reference(as_of),
                event_date=as_of,
                created_at=now,
            )
        )
        logger.debug(f"Reset daily usage for user {updated.user_id} as of {as_of}")
        return updated

    async def execute(self, user_id: str, as_of: Optional[date] = None) -> Result[ResetResponseDTO]:
        as_of = as_of or self.clock.today()

        async def operation() -> Result[ResetResponseDTO]:
            account = await self.account_repo.get_by_user_id(user_id, for_update=True)
            if account is None:
                await self.uow.rollback()
                return Return.err(account_not_found(user_id))

            updated = await self.apply(account, as_of)
            await self.uow.commit()

            current = updated or account
            return Return.ok(
                ResetResponseDTO(
                    user_id=user_id,
                    reset_performed=updated is not None,
                    daily_used=current.daily_used,
                    last_reset_date=current.last_reset_date,
                )
            )

        return await run_with_retry(self.uow, operation, "reset_if_due", self.retry_policy)


class ResetAllDue:
    """
    Use Case: Reset daily usage for every account not yet reset for as_of

    Accounts are processed in id-ordered batches, each reset committed on
    its own so one failing account does not block the rest. Overlapping
    runs are safe: the loser of the conditional update counts as skipped.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
        batch_size: int = 500,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.clock = clock
        self.batch_size = batch_size
        self.retry_policy = retry_policy or RetryPolicy()
        self.reset_if_due = ResetIfDue(uow, account_repo, event_repo, clock, self.retry_policy)

    async def execute(self, as_of: Optional[date] = None) -> Result[ResetSweepResultDTO]:
        start_time = time.time()
        as_of = as_of or self.clock.today()

        checked = 0
        reset = 0
        skipped = 0
        failed = 0
        after_id = 0

        logger.info(f"Starting daily usage reset sweep as of {as_of}")

        while True:
            try:
                batch = await self.account_repo.get_due_for_reset(
                    as_of, limit=self.batch_size, after_id=after_id
                )
            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to load accounts due for reset: {e}")
                return Return.err(
                    Error(
                        code=ErrorCode.STORAGE_ERROR,
                        message="Failed to load accounts due for reset",
                        reason=str(e),
                    )
                )

            if not batch:
                await self.uow.rollback()
                break

            # Plain values only: a rollback expires the loaded instances
            due = [(account.id, account.user_id) for account in batch]
            after_id = due[-1][0]

            for account_id, user_id in due:
                checked += 1
                result = await run_with_retry(
                    self.uow,
                    lambda account_id=account_id: self._reset_one(account_id, as_of),
                    "reset_all_due",
                    self.retry_policy,
                )
                if result.is_err():
                    failed += 1
                    logger.error(
                        f"Failed to reset daily usage for user {user_id}: "
                        f"{result.error.reason}"
                    )
                elif result.value:
                    reset += 1
                else:
                    skipped += 1

        execution_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            f"Daily reset sweep complete: {reset} reset, {skipped} skipped, "
            f"{failed} failed out of {checked} due, {execution_time_ms}ms"
        )

        return Return.ok(
            ResetSweepResultDTO(
                as_of=as_of,
                accounts_checked=checked,
                accounts_reset=reset,
                accounts_skipped=skipped,
                accounts_failed=failed,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _reset_one(self, account_id: int, as_of: date) -> Result[bool]:
        account = await self.account_repo.get_by_id(account_id, for_update=True)
        if account is None:
            await self.uow.rollback()
            return Return.ok(False)

        updated = await self.reset_if_due.apply(account, as_of)
        await self.uow.commit()
        return Return.ok(updated is not None)
