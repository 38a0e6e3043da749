"""EnsureAccount

Single place where lazily created accounts get their defaults. Every entry
point that touches an account goes through here.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.app.services.clock import Clock
from src.domain.credit_account import CreditAccount
from src.domain.ledger_event import LedgerEvent, LedgerEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountDefaults:
    balance: int = 500
    daily_limit: int = 500

    @classmethod
    def from_config(cls, config) -> "AccountDefaults":
        return cls(balance=config.DEFAULT_BALANCE, daily_limit=config.DEFAULT_DAILY_LIMIT)


def opening_reference(user_id: str) -> str:
    return f"account-opening:{user_id}"


class EnsureAccount:
    """
    Get a user's account, creating it with defaults when absent

    The opening balance is booked as total_earned plus an initial_grant
    event, so balance, totals and the event log agree from the start.
    Does not commit; runs inside the caller's unit of work.
    """

    def __init__(
        self,
        account_repo: CreditAccountRepository,
        event_repo: LedgerEventRepository,
        clock: Clock,
        defaults: Optional[AccountDefaults] = None,
    ):
        self.account_repo = account_repo
        self.event_repo = event_repo
        self.clock = clock
        self.defaults = defaults or AccountDefaults()

    async def execute(
        self, user_id: str, for_update: bool = False, create: bool = True
    ) -> Optional[CreditAccount]:
        """
        Args:
            user_id: User identifier
            for_update: Lock the account row for the rest of the transaction
            create: When False, return None instead of creating

        Returns:
            The user's CreditAccount, or None if absent and create is False
        """
        account = await self.account_repo.get_by_user_id(user_id, for_update=for_update)
        if account is not None or not create:
            return account

        now = self.clock.now()
        candidate = CreditAccount(
            user_id=user_id,
            balance=self.defaults.balance,
            daily_limit=self.defaults.daily_limit,
            daily_used=0,
            total_earned=self.defaults.balance,
            total_spent=0,
            last_reset_date=now.date(),
            created_at=now,
            updated_at=now,
        )

        created = await self.account_repo.create_if_absent(candidate)
        if created is None:
            # Lost the creation race; use the winner's row
            return await self.account_repo.get_by_user_id(user_id, for_update=for_update)

        if created.balance > 0:
            await self.event_repo.create(
                LedgerEvent(
                    user_id=user_id,
                    account_id=created.id,
                    event_type=LedgerEventType.INITIAL_GRANT,
                    amount=created.balance,
                    balance_after=created.balance,
                    description="Opening credit balance",
                    reference=opening_reference(user_id),
                    event_date=now.date(),
                    created_at=now,
                )
            )

        logger.info(f"Created credit account for user {user_id} with balance {created.balance}")
        return created
