"""Get Balance Use Case

Retrieves a user's current credit balance, applying today's reset first.
"""

from typing import Optional
from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from .ensure_account import EnsureAccount, AccountDefaults
from .reset_daily_usage import ResetIfDue
from .retry import RetryPolicy, run_with_retry
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Returns the account snapshot for a user. Creates the account with
    defaults when absent and heals a pending daily reset, so the numbers
    always reflect the current day.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
        defaults: Optional[AccountDefaults] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.uow = uow
        self.clock = clock
        self.retry_policy = retry_policy or RetryPolicy()
        self.ensure_account = EnsureAccount(account_repo, event_repo, clock, defaults)
        self.reset_if_due = ResetIfDue(uow, account_repo, event_repo, clock, self.retry_policy)

    async def execute(self, user_id: str) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            user_id: The user identifier

        Returns:
            Result[BalanceResponseDTO]: Success with balance data or STORAGE_ERROR
        """
        return await run_with_retry(
            self.uow, lambda: self._get_balance(user_id), "get_balance", self.retry_policy
        )

    async def _get_balance(self, user_id: str) -> Result[BalanceResponseDTO]:
        account = await self.ensure_account.execute(user_id, for_update=True)
        account = await self.reset_if_due.apply(account, self.clock.today()) or account
        await self.uow.commit()

        return Return.ok(
            BalanceResponseDTO(
                user_id=account.user_id,
                balance=account.balance,
                daily_limit=account.daily_limit,
                daily_used=account.daily_used,
                daily_remaining=account.daily_remaining,
                total_earned=account.total_earned,
                total_spent=account.total_spent,
                last_reset_date=account.last_reset_date,
                last_updated=account.updated_at,
            )
        )
