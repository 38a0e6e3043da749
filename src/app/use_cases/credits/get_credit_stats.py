"""GetCreditStats Use Case

Admin overview of credit activity for a day.
"""

from datetime import date
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.ledger_event import LedgerEventType
from .errors import ErrorCode
from .dtos import CreditStatsDTO


class GetCreditStats:

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.clock = clock

    async def execute(self, as_of: Optional[date] = None) -> Result[CreditStatsDTO]:
        as_of = as_of or self.clock.today()

        try:
            stats = CreditStatsDTO(
                as_of=as_of,
                total_accounts=await self.account_repo.count(),
                active_users=await self.event_repo.count_distinct_users(
                    as_of, LedgerEventType.CONSUMPTION
                ),
                daily_active_users=await self.event_repo.count_distinct_users(as_of),
                total_credits_issued=await self.event_repo.sum_credits_issued(),
                total_credits_consumed=await self.event_repo.sum_credits_consumed(),
                resets_today=await self.event_repo.count_by_type(LedgerEventType.RESET, as_of),
                bonus_credits_today=await self.event_repo.sum_by_type(
                    LedgerEventType.DAILY_BONUS, as_of
                ),
            )
            await self.uow.rollback()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message="Failed to compute credit statistics",
                    reason=str(e),
                )
            )

        return Return.ok(stats)
