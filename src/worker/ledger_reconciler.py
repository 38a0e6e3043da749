"""Ledger Reconciliation Background Worker

Checks every account's balance against total_earned - total_spent and the
sum of its ledger events, and logs any account where they disagree.

    python -m src.worker.ledger_reconciler [--once] [--interval SECONDS]
"""

import argparse
import asyncio
import logging
from typing import Optional

from config import ApplicationConfig
from src.depends import create_engine_from_uri, create_session_factory
from src.adapter.repositories.credit_account_repository import SqlAlchemyCreditAccountRepository
from src.adapter.repositories.ledger_event_repository import SqlAlchemyLedgerEventRepository
from src.adapter.services.clock import SystemClock
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.clock import Clock
from src.app.use_cases.credits import ReconcileLedger, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class LedgerReconcilerWorker:
    """Runs ReconcileLedger on a schedule; read-only, never corrects balances"""

    def __init__(self, db_uri: Optional[str] = None, clock: Optional[Clock] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.clock = clock or SystemClock()

        self.engine = create_engine_from_uri(self.db_uri)
        self.session_factory = create_session_factory(self.engine)

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Reconcile all accounts once

        Raises:
            RuntimeError: If the reconciliation itself failed
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Ledger reconciliation is disabled, skipping")
            return ReconciliationResultDTO(
                total_accounts_checked=0,
                discrepancies_found=0,
                discrepancies=[],
                reconciliation_time=self.clock.now(),
                execution_time_ms=0,
            )

        async with self.session_factory() as session:
            result = await ReconcileLedger(
                uow=SqlAlchemyUnitOfWork(session),
                account_repo=SqlAlchemyCreditAccountRepository(session),
                event_repo=SqlAlchemyLedgerEventRepository(session),
                batch_size=ApplicationConfig.RESET_BATCH_SIZE,
            ).execute()

        if result.is_err():
            logger.error(f"Reconciliation failed: {result.error.message}")
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        self._report(result.value)
        return result.value

    def _report(self, response: ReconciliationResultDTO) -> None:
        logger.info(
            f"Reconciled {response.total_accounts_checked} accounts in "
            f"{response.execution_time_ms}ms, {response.discrepancies_found} discrepancies"
        )
        for d in response.discrepancies:
            logger.error(
                f"Ledger discrepancy for user {d.user_id} (account_id={d.account_id}): "
                f"balance={d.balance}, earned-spent={d.total_earned - d.total_spent}, "
                f"event_sum={d.event_sum}, diff={d.discrepancy}"
            )

    async def run_forever(self, interval_seconds: Optional[int] = None):
        interval_seconds = interval_seconds or ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS
        logger.info(f"Reconciling ledger every {interval_seconds}s")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("LedgerReconcilerWorker shutdown complete")


async def main():
    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Ledger Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=None,
        help="Seconds between runs (default: RECONCILIATION_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = LedgerReconcilerWorker()
    try:
        if args.once:
            await worker.run_once()
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
