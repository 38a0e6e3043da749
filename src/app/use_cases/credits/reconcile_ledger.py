"""ReconcileLedger Use Case

Reconciles account balances against their ledger events to detect discrepancies.
"""

import logging
import time
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from .errors import ErrorCode
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Reconcile credit accounts against ledger events

    Business Rules:
    1. For every account, balance must equal total_earned - total_spent
    2. The sum of the account's event amounts must equal the same figure
    3. Any mismatch is recorded and logged as a discrepancy
    4. Does NOT modify any data (read-only reconciliation)

    Flow:
    1. Walk all accounts in id-ordered batches
    2. For each account:
       a. Sum its ledger event amounts
       b. Compare with balance and with total_earned - total_spent
       c. If either differs, record discrepancy
    3. Return reconciliation result with all discrepancies
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        batch_size: int = 500,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.batch_size = batch_size

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute ledger reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting credit ledger reconciliation")

            total_accounts = 0
            discrepancies: list[LedgerDiscrepancyDTO] = []
            after_id = 0

            while True:
                accounts = await self.account_repo.get_batch(limit=self.batch_size, after_id=after_id)
                if not accounts:
                    break

                for account in accounts:
                    total_accounts += 1
                    event_sum = await self.event_repo.get_amount_sum_by_account(account.id)
                    expected = account.total_earned - account.total_spent

                    if account.balance != expected or event_sum != expected:
                        discrepancy = LedgerDiscrepancyDTO(
                            user_id=account.user_id,
                            account_id=account.id,
                            balance=account.balance,
                            total_earned=account.total_earned,
                            total_spent=account.total_spent,
                            event_sum=event_sum,
                            discrepancy=account.balance - event_sum,
                        )
                        discrepancies.append(discrepancy)

                        logger.warning(
                            f"Discrepancy found for user {account.user_id} "
                            f"(account_id={account.id}): "
                            f"balance={account.balance}, "
                            f"earned-spent={expected}, "
                            f"event_sum={event_sum}"
                        )

                after_id = accounts[-1].id

            await self.uow.rollback()

            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_accounts_checked=total_accounts,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_accounts} accounts in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_accounts} accounts balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message="Failed to reconcile credit ledger",
                    reason=str(e),
                )
            )
