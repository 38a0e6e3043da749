"""AdjustAccount Use Case

Admin corrections to a single account. Balance changes are booked as
compensating ledger events so the account still reconciles afterwards.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.credit_account import CreditAccount
from src.domain.event_metadata import AdminMetadata, dump_event_metadata
from src.domain.ledger_event import LedgerEvent, LedgerEventType
from .errors import ErrorCode, account_not_found
from .list_accounts import to_account_summary
from .retry import RetryPolicy, run_with_retry
from .dtos import AccountAction, AdjustAccountCommandDTO, AdjustAccountResponseDTO

logger = logging.getLogger(__name__)


class AdjustAccount:
    """
    Use Case: Admin adjustment of one account

    Actions:
    - set_balance: moves balance to the requested value and books the signed
      difference as an admin_adjustment event. Raises go to total_earned and
      cuts to total_spent; daily_used is left alone. Nothing is written when
      the balance already matches.
    - set_daily_limit: replaces the daily allowance, balance untouched
    - reset_daily: zeroes daily_used for today and books an admin_reset event

    Never creates accounts (ACCOUNT_NOT_FOUND).
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

    async def execute(self, command: AdjustAccountCommandDTO) -> Result[AdjustAccountResponseDTO]:
        value_error = self._validate(command)
        if value_error:
            return Return.err(value_error)

        return await run_with_retry(
            self.uow, lambda: self._adjust(command), "adjust_account", self.retry_policy
        )

    def _validate(self, command: AdjustAccountCommandDTO) -> Optional[Error]:
        if command.action == AccountAction.SET_BALANCE:
            field, value = "balance", command.balance
        elif command.action == AccountAction.SET_DAILY_LIMIT:
            field, value = "daily_limit", command.daily_limit
        else:
            return None

        if value is None or value < 0:
            return Error(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"{field} must be a non-negative integer for {command.action.value}",
                reason=f"{field}={value!r}",
            )
        return None

    async def _adjust(self, command: AdjustAccountCommandDTO) -> Result[AdjustAccountResponseDTO]:
        account = await self.account_repo.get_by_user_id(command.user_id, for_update=True)
        if account is None:
            await self.uow.rollback()
            return Return.err(account_not_found(command.user_id))

        now = self.clock.now()
        adjustment = 0
        event = None

        if command.action == AccountAction.SET_BALANCE:
            adjustment = command.balance - account.balance
            previous_balance = account.balance
            updated = account
            if adjustment != 0:
                updated = await self.account_repo.adjust_balance(account.id, adjustment, now)
                if updated is None:
                    await self.uow.rollback()
                    return Return.err(
                        Error(
                            code=ErrorCode.INSUFFICIENT_CREDITS,
                            message="Balance changed during the adjustment",
                            reason=f"adjustment={adjustment}",
                        )
                    )
                sign = "+" if adjustment > 0 else ""
                event = self._event(
                    updated,
                    LedgerEventType.ADMIN_ADJUSTMENT,
                    adjustment,
                    f"Admin balance adjustment: {sign}{adjustment} credits (set balance to {command.balance})",
                    AdminMetadata(
                        action=command.action.value,
                        reason=command.reason,
                        previous_balance=previous_balance,
                        requested_balance=command.balance,
                    ),
                    now,
                )

        elif command.action == AccountAction.SET_DAILY_LIMIT:
            updated = await self.account_repo.set_daily_limit(account.id, command.daily_limit, now)

        else:
            updated = await self.account_repo.clear_daily_usage(account.id, now.date(), now)
            event = self._event(
                updated,
                LedgerEventType.ADMIN_RESET,
                0,
                "Admin daily usage reset",
                AdminMetadata(action=command.action.value, reason=command.reason),
                now,
            )

        transaction_id = None
        if event is not None:
            created = await self.event_repo.create(event)
            transaction_id = created.id

        summary = to_account_summary(updated)
        await self.uow.commit()

        logger.info(
            f"Admin {command.action.value} on user {command.user_id}: "
            f"balance {summary.balance}, daily_limit {summary.daily_limit}, adjustment {adjustment}"
        )

        return Return.ok(
            AdjustAccountResponseDTO(
                action=command.action,
                account=summary,
                adjustment=adjustment,
                transaction_id=transaction_id,
            )
        )

    def _event(
        self,
        account: CreditAccount,
        event_type: LedgerEventType,
        amount: int,
        description: str,
        metadata: AdminMetadata,
        now,
    ) -> LedgerEvent:
        return LedgerEvent(
            user_id=account.user_id,
            account_id=account.id,
            event_type=event_type,
            amount=amount,
            balance_after=account.balance,
            description=description,
            event_metadata=dump_event_metadata(metadata),
            event_date=now.date(),
            created_at=now,
        )
