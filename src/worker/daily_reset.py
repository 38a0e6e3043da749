"""Daily Reset Background Worker

Resets daily credit usage for every account that has not been reset for the
day yet, then grants the daily subscriber bonus.

    python -m src.worker.daily_reset [--once] [--date YYYY-MM-DD] [--interval SECONDS]
"""

import argparse
import asyncio
import logging
from datetime import date, datetime
from typing import Optional

from config import ApplicationConfig
from src.depends import create_engine_from_uri, create_session_factory
from src.adapter.repositories.credit_account_repository import SqlAlchemyCreditAccountRepository
from src.adapter.repositories.ledger_event_repository import SqlAlchemyLedgerEventRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.clock import SystemClock
from src.app.services.clock import Clock
from src.app.use_cases.credits import (
    AccountDefaults,
    AllocateCredits,
    DailyBonusResultDTO,
    DailyLimitSubscriberPredicate,
    GrantDailyBonus,
    ResetAllDue,
    ResetSweepResultDTO,
    RetryPolicy,
)

logger = logging.getLogger(__name__)


class DailyResetWorker:
    """
    Background worker for the daily credit reset

    Each step runs in its own session. Safe to re-run: overlapping runs do
    not double-reset or double-credit.
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.clock = clock or SystemClock()
        self.retry_policy = RetryPolicy.from_config(ApplicationConfig)

        self.engine = create_engine_from_uri(self.db_uri)
        self.async_session_factory = create_session_factory(self.engine)

    async def run_once(
        self, as_of: Optional[date] = None
    ) -> tuple[Optional[ResetSweepResultDTO], Optional[DailyBonusResultDTO]]:
        """
        Run the reset sweep, then the bonus grant, for one day

        Args:
            as_of: Day to reset for (default: today)

        Returns:
            (reset summary, bonus summary); either is None when that step is
            disabled or failed to run
        """
        as_of = as_of or self.clock.today()
        reset_summary = None
        bonus_summary = None

        if ApplicationConfig.DAILY_RESET_ENABLED:
            async with self.async_session_factory() as session:
                uow = SqlAlchemyUnitOfWork(session)
                use_case = ResetAllDue(
                    uow=uow,
                    account_repo=SqlAlchemyCreditAccountRepository(session),
                    event_repo=SqlAlchemyLedgerEventRepository(session),
                    clock=self.clock,
                    batch_size=ApplicationConfig.RESET_BATCH_SIZE,
                    retry_policy=self.retry_policy,
                )
                result = await use_case.execute(as_of=as_of)

            if result.is_err():
                logger.error(f"Daily reset failed: {result.error.message}")
            else:
                reset_summary = result.value
        else:
            logger.info("Daily reset is disabled, skipping")

        if ApplicationConfig.DAILY_BONUS_ENABLED:
            async with self.async_session_factory() as session:
                uow = SqlAlchemyUnitOfWork(session)
                account_repo = SqlAlchemyCreditAccountRepository(session)
                event_repo = SqlAlchemyLedgerEventRepository(session)

                allocate_uc = AllocateCredits(
                    uow=uow,
                    account_repo=account_repo,
                    event_repo=event_repo,
                    clock=self.clock,
                    defaults=AccountDefaults.from_config(ApplicationConfig),
                    retry_policy=self.retry_policy,
                )
                use_case = GrantDailyBonus(
                    uow=uow,
                    account_repo=account_repo,
                    event_repo=event_repo,
                    clock=self.clock,
                    allocate_credits=allocate_uc,
                    bonus_credits=ApplicationConfig.DAILY_BONUS_CREDITS,
                    is_subscriber=DailyLimitSubscriberPredicate(
                        ApplicationConfig.SUBSCRIBER_DAILY_LIMIT_THRESHOLD
                    ),
                    batch_size=ApplicationConfig.RESET_BATCH_SIZE,
                )
                result = await use_case.execute(as_of=as_of)

            if result.is_err():
                logger.error(f"Daily bonus failed: {result.error.message}")
            else:
                bonus_summary = result.value
        else:
            logger.info("Daily bonus is disabled, skipping")

        return reset_summary, bonus_summary

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run the daily reset continuously

        Each cycle resets whatever is due for the current day, so a missed
        midnight is healed on the next cycle.

        Args:
            interval_seconds: Seconds between cycles (default: DAILY_RESET_INTERVAL_SECONDS)
        """
        interval_seconds = interval_seconds or ApplicationConfig.DAILY_RESET_INTERVAL_SECONDS
        logger.info(f"Starting continuous daily reset with {interval_seconds}s interval")

        while True:
            try:
                reset_summary, bonus_summary = await self.run_once()
                if reset_summary:
                    logger.info(
                        f"Reset cycle complete. {reset_summary.accounts_reset} accounts reset"
                    )
                if bonus_summary:
                    logger.info(
                        f"Bonus cycle complete. {bonus_summary.accounts_credited} accounts credited"
                    )
            except Exception as e:
                logger.error(f"Daily reset cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("DailyResetWorker shutdown complete")


def _parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


async def main():
    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Daily Credit Reset Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument("--date", type=_parse_date, help="Day to reset for (YYYY-MM-DD)")
    parser.add_argument(
        "--interval", type=int, default=None,
        help="Interval between runs in seconds (default: DAILY_RESET_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = DailyResetWorker()

    try:
        if args.once or args.date:
            await worker.run_once(as_of=args.date)
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
