"""ConsumeCredits Use Case

Spends credits from a user's balance. The balance guard and the decrement
are one conditional UPDATE, committed together with the consumption event.
"""

import logging
from typing import Optional
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.clock import Clock
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.ledger_event import LedgerEvent, LedgerEventType
from src.domain.event_metadata import parse_event_metadata, dump_event_metadata
from .ensure_account import EnsureAccount, AccountDefaults
from .reset_daily_usage import ResetIfDue
from .errors import ErrorCode, validate_amount, invalid_metadata
from .retry import RetryPolicy, run_with_retry
from .dtos import ConsumeCommandDTO, ConsumeResponseDTO

logger = logging.getLogger(__name__)


class ConsumeCredits:
    """
    Use Case: Consume credits from a user's balance

    Business Rules:
    1. amount must be a positive integer (INVALID_AMOUNT)
    2. Accounts are created with defaults on first use
    3. The daily reset is applied first, so daily_used reflects today
    4. balance >= amount is checked by the UPDATE itself (INSUFFICIENT_CREDITS)
    5. Balance, totals and the consumption event commit atomically
    6. A repeated reference returns the original result
    7. daily_used is tracked but not enforced against daily_limit

    Flow:
    1. Replay check by reference
    2. Ensure account (row lock)
    3. Opportunistic daily reset
    4. Guarded debit
    5. Append consumption event (amount = -amount)
    6. Commit
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
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.clock = clock
        self.retry_policy = retry_policy or RetryPolicy()
        self.ensure_account = EnsureAccount(account_repo, event_repo, clock, defaults)
        self.reset_if_due = ResetIfDue(uow, account_repo, event_repo, clock, self.retry_policy)

    async def execute(self, command: ConsumeCommandDTO) -> Result[ConsumeResponseDTO]:
        amount_error = validate_amount(command.amount)
        if amount_error:
            return Return.err(amount_error)

        try:
            parse_event_metadata(LedgerEventType.CONSUMPTION, command.metadata)
        except ValidationError as e:
            return Return.err(invalid_metadata(e))

        return await run_with_retry(
            self.uow, lambda: self._consume(command), "consume_credits", self.retry_policy
        )

    async def _consume(self, command: ConsumeCommandDTO) -> Result[ConsumeResponseDTO]:
        if command.reference:
            existing = await self._find_prior(command)
            if existing:
                return Return.ok(existing)

        account = await self.ensure_account.execute(command.user_id, for_update=True)

        if command.reference:
            # Re-check under the row lock
            existing = await self._find_prior(command)
            if existing:
                return Return.ok(existing)

        now = self.clock.now()
        await self.reset_if_due.apply(account, now.date())

        available = account.balance
        updated = await self.account_repo.debit(account.id, command.amount, now)
        if updated is None:
            await self.uow.rollback()
            logger.info(
                f"Insufficient credits for user {command.user_id}: "
                f"required={command.amount}, available={available}"
            )
            return Return.err(
                Error(
                    code=ErrorCode.INSUFFICIENT_CREDITS,
                    message=f"Insufficient credits. Required: {command.amount}, Available: {available}",
                    reason=f"balance={available}, required={command.amount}",
                )
            )

        metadata = parse_event_metadata(LedgerEventType.CONSUMPTION, command.metadata)
        event = LedgerEvent(
            user_id=command.user_id,
            account_id=updated.id,
            event_type=LedgerEventType.CONSUMPTION,
            amount=-command.amount,
            balance_after=updated.balance,
            description=command.description,
            reference=command.reference,
            event_metadata=dump_event_metadata(metadata),
            event_date=now.date(),
            created_at=now,
        )

        try:
            created = await self.event_repo.create(event)
        except IntegrityError:
            await self.uow.rollback()
            if not command.reference:
                raise
            existing = await self._find_prior(command)
            if existing is None:
                raise
            return Return.ok(existing)

        await self.uow.commit()

        logger.info(
            f"Consumed {command.amount} credits for user {command.user_id}, "
            f"balance now {updated.balance}"
        )

        return Return.ok(
            ConsumeResponseDTO(
                transaction_id=created.id,
                user_id=command.user_id,
                consumed=command.amount,
                new_balance=updated.balance,
                reference=created.reference,
                created_at=created.created_at,
            )
        )

    async def _find_prior(self, command: ConsumeCommandDTO) -> Optional[ConsumeResponseDTO]:
        event = await self.event_repo.get_by_reference(
            command.user_id, LedgerEventType.CONSUMPTION, command.reference
        )
        if event is None:
            return None

        response = ConsumeResponseDTO(
            transaction_id=event.id,
            user_id=event.user_id,
            consumed=-event.amount,
            new_balance=event.balance_after,
            reference=event.reference,
            created_at=event.created_at,
        )
        await self.uow.rollback()

        logger.info(f"Replaying consumption {command.reference} for user {command.user_id}")
        return response
