"""AllocateCredits Use Case

Adds credits to a user's balance for top-ups, purchases and bonuses.
Payment webhooks may deliver the same confirmation more than once, so a
repeated reference resolves to the original result instead of crediting twice.
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
from src.domain.ledger_event import LedgerEvent, LedgerEventType, CREDIT_EVENT_TYPES
from src.domain.event_metadata import parse_event_metadata, dump_event_metadata
from .ensure_account import EnsureAccount, AccountDefaults
from .errors import ErrorCode, validate_amount, invalid_metadata
from .retry import RetryPolicy, run_with_retry
from .dtos import CreditCommandDTO, CreditResponseDTO

logger = logging.getLogger(__name__)


class AllocateCredits:
    """
    Use Case: Add credits to a user's balance

    Business Rules:
    1. Idempotency: same (user, event_type, reference) returns the prior result,
       or DUPLICATE_REFERENCE when the command is strict
    2. Account creation: accounts are created with defaults on first use
    3. Atomic updates: balance, total_earned and the event commit together
    4. A concurrent duplicate rejected by the unique constraint is rolled
       back and resolved like a replay

    Flow:
    1. Check idempotency (return existing if found)
    2. Ensure account with lock
    3. Re-check idempotency under the lock
    4. Increment balance and total_earned
    5. Append ledger event
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

    async def execute(self, command: CreditCommandDTO) -> Result[CreditResponseDTO]:
        amount_error = validate_amount(command.amount)
        if amount_error:
            return Return.err(amount_error)

        if command.event_type not in CREDIT_EVENT_TYPES:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR,
                    message=f"Event type {command.event_type.value} cannot add credits",
                    reason=f"allowed={sorted(t.value for t in CREDIT_EVENT_TYPES)}",
                )
            )

        try:
            parse_event_metadata(command.event_type, command.metadata)
        except ValidationError as e:
            return Return.err(invalid_metadata(e))

        return await run_with_retry(
            self.uow, lambda: self._allocate(command), "allocate_credits", self.retry_policy
        )

    async def _allocate(self, command: CreditCommandDTO) -> Result[CreditResponseDTO]:
        if command.reference:
            replay = await self.replay(
                command.user_id, command.event_type, command.reference, command.strict
            )
            if replay is not None:
                return replay

        account = await self.ensure_account.execute(command.user_id, for_update=True)

        if command.reference:
            replay = await self.replay(
                command.user_id, command.event_type, command.reference, command.strict
            )
            if replay is not None:
                return replay

        now = self.clock.now()
        updated = await self.account_repo.credit(account.id, command.amount, now)

        metadata = parse_event_metadata(command.event_type, command.metadata)
        event = LedgerEvent(
            user_id=command.user_id,
            account_id=updated.id,
            event_type=command.event_type,
            amount=command.amount,
            balance_after=updated.balance,
            description=command.description,
            reference=command.reference,
            event_metadata=dump_event_metadata(metadata),
            event_date=command.effective_date or now.date(),
            created_at=now,
        )

        try:
            created = await self.event_repo.create(event)
        except IntegrityError:
            # Lost a race with an identical delivery; undo our credit
            await self.uow.rollback()
            if not command.reference:
                raise
            replay = await self.replay(
                command.user_id, command.event_type, command.reference, command.strict
            )
            if replay is None:
                raise
            return replay

        await self.uow.commit()

        logger.info(
            f"Credited {command.amount} ({command.event_type.value}) to user {command.user_id}, "
            f"balance now {updated.balance}"
        )

        return Return.ok(self._to_response_dto(created))

    async def replay(
        self,
        user_id: str,
        event_type: LedgerEventType,
        reference: str,
        strict: bool = False,
    ) -> Optional[Result[CreditResponseDTO]]:
        """Prior result for (user_id, event_type, reference), or None when not yet credited"""
        existing = await self.event_repo.get_by_reference(user_id, event_type, reference)
        if existing is None:
            return None

        response = self._to_response_dto(existing)
        await self.uow.rollback()

        if strict:
            return Return.err(
                Error(
                    code=ErrorCode.DUPLICATE_REFERENCE,
                    message=f"Reference {reference} was already credited",
                    reason=f"transaction_id={response.transaction_id}",
                )
            )

        logger.info(
            f"Duplicate {event_type.value} reference {reference} for user "
            f"{user_id}; returning original transaction {response.transaction_id}"
        )
        return Return.ok(response)

    def _to_response_dto(self, event: LedgerEvent) -> CreditResponseDTO:
        """
        Convert LedgerEvent entity to response DTO

        Balance snapshots are stored in the event for perfect idempotency.
        """
        return CreditResponseDTO(
            transaction_id=event.id,
            user_id=event.user_id,
            event_type=LedgerEventType(event.event_type).value,
            amount=event.amount,
            balance_after=event.balance_after,
            reference=event.reference,
            created_at=event.created_at,
        )
