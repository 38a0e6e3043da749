"""GrantDailyBonus Use Case

Credits a fixed daily bonus to paid-tier accounts, at most once per day.
"""

import logging
import time
from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.credit_account import CreditAccount
from src.domain.ledger_event import LedgerEventType
from src.domain.event_metadata import BonusMetadata, dump_event_metadata
from .allocate_credits import AllocateCredits
from .errors import ErrorCode
from .dtos import CreditCommandDTO, DailyBonusResultDTO

logger = logging.getLogger(__name__)

SubscriberPredicate = Callable[[CreditAccount], bool]


def bonus_reference(as_of: date) -> str:
    return f"daily-bonus-{as_of.isoformat()}"


class DailyLimitSubscriberPredicate:
    """Paid tier = daily limit raised above the free-tier threshold"""

    def __init__(self, threshold: int = 500):
        self.threshold = threshold

    def __call__(self, account: CreditAccount) -> bool:
        return account.daily_limit > self.threshold


class GrantDailyBonus:
    """
    Use Case: Grant the daily subscriber bonus

    Business Rules:
    1. Only accounts accepted by the subscriber predicate are credited
    2. An existing daily_bonus event dated as_of means already granted
    3. The bonus reference is unique per day, so overlapping runs cannot
       double-credit (the loser gets DUPLICATE_REFERENCE and is skipped)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
        allocate_credits: AllocateCredits,
        bonus_credits: int = 10,
        is_subscriber: Optional[SubscriberPredicate] = None,
        batch_size: int = 500,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.clock = clock
        self.allocate_credits = allocate_credits
        self.bonus_credits = bonus_credits
        self.is_subscriber = is_subscriber or DailyLimitSubscriberPredicate()
        self.batch_size = batch_size

    async def execute(self, as_of: Optional[date] = None) -> Result[DailyBonusResultDTO]:
        start_time = time.time()
        as_of = as_of or self.clock.today()

        checked = 0
        eligible = 0
        credited = 0
        skipped = 0
        failed = 0
        credits_added = 0
        after_id = 0

        logger.info(f"Starting daily bonus grant as of {as_of}")

        while True:
            try:
                batch = await self.account_repo.get_batch(limit=self.batch_size, after_id=after_id)
                candidates = [
                    account.user_id for account in batch if self.is_subscriber(account)
                ]
                checked += len(batch)
                if batch:
                    after_id = batch[-1].id
                await self.uow.rollback()
            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Failed to load accounts for daily bonus: {e}")
                return Return.err(
                    Error(
                        code=ErrorCode.STORAGE_ERROR,
                        message="Failed to load accounts for daily bonus",
                        reason=str(e),
                    )
                )

            if not batch:
                break

            for user_id in candidates:
                eligible += 1
                try:
                    already_granted = await self.event_repo.exists_for_date(
                        user_id, LedgerEventType.DAILY_BONUS, as_of
                    )
                    await self.uow.rollback()
                except Exception as e:
                    await self.uow.rollback()
                    failed += 1
                    logger.error(f"Failed to check daily bonus for user {user_id}: {e}")
                    continue

                if already_granted:
                    skipped += 1
                    continue

                result = await self.allocate_credits.execute(
                    CreditCommandDTO(
                        user_id=user_id,
                        amount=self.bonus_credits,
                        event_type=LedgerEventType.DAILY_BONUS,
                        description="Daily subscription bonus credits",
                        reference=bonus_reference(as_of),
                        metadata=dump_event_metadata(BonusMetadata(bonus_date=as_of.isoformat())),
                        effective_date=as_of,
                        strict=True,
                    )
                )

                if result.is_ok():
                    credited += 1
                    credits_added += self.bonus_credits
                elif result.error.code == ErrorCode.DUPLICATE_REFERENCE:
                    skipped += 1
                else:
                    failed += 1
                    logger.error(
                        f"Failed to grant daily bonus to user {user_id}: {result.error.message}"
                    )

        execution_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            f"Daily bonus complete: {credits_added} credits to {credited}/{eligible} "
            f"eligible accounts ({skipped} skipped, {failed} failed), {execution_time_ms}ms"
        )

        return Return.ok(
            DailyBonusResultDTO(
                as_of=as_of,
                accounts_checked=checked,
                accounts_eligible=eligible,
                accounts_credited=credited,
                accounts_skipped=skipped,
                accounts_failed=failed,
                credits_added=credits_added,
                execution_time_ms=execution_time_ms,
            )
        )
