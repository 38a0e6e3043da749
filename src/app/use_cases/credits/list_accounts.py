"""
List Accounts Use Case

Admin view of credit accounts, most active spenders first.
"""
import math
from typing import Optional
from config import ApplicationConfig
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.domain.credit_account import CreditAccount
from .errors import ErrorCode
from .retry import RetryPolicy, run_with_retry
from .dtos import AccountListResponseDTO, AccountSummaryDTO


def to_account_summary(account: CreditAccount) -> AccountSummaryDTO:
    return AccountSummaryDTO(
        user_id=account.user_id,
        balance=account.balance,
        daily_limit=account.daily_limit,
        daily_used=account.daily_used,
        daily_remaining=account.daily_remaining,
        total_earned=account.total_earned,
        total_spent=account.total_spent,
        last_reset_date=account.last_reset_date,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


class ListAccounts:
    """
    Use case: Paginated account listing

    Ordered by total_spent DESC, ties by account id. An optional search
    matches a case-insensitive substring of user_id. Read-only.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        max_limit: Optional[int] = None,
        default_limit: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.max_limit = max_limit or ApplicationConfig.ACCOUNTS_MAX_PAGE_SIZE
        self.default_limit = default_limit or ApplicationConfig.ACCOUNTS_DEFAULT_PAGE_SIZE
        self.retry_policy = retry_policy or RetryPolicy()

    async def execute(
        self, page: int = 1, limit: Optional[int] = None, search: Optional[str] = None
    ) -> Result[AccountListResponseDTO]:
        if limit is None:
            limit = self.default_limit

        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR,
                    message="page must be a positive integer",
                    reason=f"page={page!r}",
                )
            )

        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self.max_limit:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR,
                    message=f"limit must be between 1 and {self.max_limit}",
                    reason=f"limit={limit!r}",
                )
            )

        search = (search or "").strip() or None

        async def operation() -> Result[AccountListResponseDTO]:
            accounts = await self.account_repo.list_page((page - 1) * limit, limit, search)
            total_count = await self.account_repo.count(search)

            summaries = [to_account_summary(account) for account in accounts]
            await self.uow.rollback()

            total_pages = math.ceil(total_count / limit)
            return Return.ok(
                AccountListResponseDTO(
                    accounts=summaries,
                    page=page,
                    limit=limit,
                    total_count=total_count,
                    total_pages=total_pages,
                    has_next=page < total_pages,
                    has_prev=page > 1,
                )
            )

        return await run_with_retry(self.uow, operation, "list_accounts", self.retry_policy)
