"""
List Transactions Use Case

Retrieves a user's most recent ledger events.
"""
from typing import Optional
from config import ApplicationConfig
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.ledger_event import LedgerEventType
from .errors import ErrorCode
from .retry import RetryPolicy, run_with_retry
from .dtos import ListTransactionsResponseDTO, TransactionDTO


class ListTransactions:
    """
    Use case: View credit transactions

    Events are ordered by created_at DESC (most recent first). Read-only.
    Page size bounds default to the TRANSACTIONS_* settings.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        event_repo: LedgerEventRepository,
        max_limit: Optional[int] = None,
        default_limit: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.uow = uow
        self.event_repo = event_repo
        self.max_limit = max_limit or ApplicationConfig.TRANSACTIONS_MAX_LIMIT
        self.default_limit = default_limit or ApplicationConfig.TRANSACTIONS_DEFAULT_LIMIT
        self.retry_policy = retry_policy or RetryPolicy()

    async def execute(self, user_id: str, limit: Optional[int] = None) -> Result[ListTransactionsResponseDTO]:
        """
        List the most recent events for a user.

        Args:
            user_id: User identifier
            limit: Maximum number of events to return (1..max_limit), default_limit if omitted

        Returns:
            Result[ListTransactionsResponseDTO]: Newest-first event list
        """
        if limit is None:
            limit = self.default_limit

        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self.max_limit:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR,
                    message=f"limit must be between 1 and {self.max_limit}",
                    reason=f"limit={limit!r}",
                )
            )

        async def operation() -> Result[ListTransactionsResponseDTO]:
            events = await self.event_repo.get_by_user_id(user_id=user_id, limit=limit)

            transaction_dtos = [
                TransactionDTO(
                    id=event.id,
                    event_type=LedgerEventType(event.event_type).value,
                    amount=event.amount,
                    balance_after=event.balance_after,
                    description=event.description,
                    reference=event.reference,
                    metadata=event.event_metadata,
                    event_date=event.event_date,
                    created_at=event.created_at,
                )
                for event in events
            ]
            await self.uow.rollback()

            return Return.ok(
                ListTransactionsResponseDTO(
                    user_id=user_id,
                    transactions=transaction_dtos,
                    limit=limit,
                )
            )

        return await run_with_retry(self.uow, operation, "list_transactions", self.retry_policy)
