"""Credit Account Repository Interface

Defines the contract for credit account persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional
from src.domain.credit_account import CreditAccount


class CreditAccountRepository(ABC):
    """
    Repository interface for CreditAccount persistence

    Balance mutations are single conditional UPDATE statements scoped to one
    account row, so a check-then-act race can never drive the balance negative.
    """

    @abstractmethod
    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[CreditAccount]:
        """
        Retrieve account by user ID

        Args:
            user_id: User identifier
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            CreditAccount if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[CreditAccount]:
        """
        Retrieve account by ID

        Args:
            account_id: Account ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            CreditAccount if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_if_absent(self, account: CreditAccount) -> Optional[CreditAccount]:
        """
        Insert a new account unless one already exists for the user

        Args:
            account: CreditAccount entity to persist

        Returns:
            The created CreditAccount, or None if a concurrent caller
            created the user's account first
        """
        pass

    @abstractmethod
    async def debit(self, account_id: int, amount: int, now: datetime) -> Optional[CreditAccount]:
        """
        Atomically spend credits if the balance covers them

        Decrements balance, increments total_spent and daily_used in one
        statement guarded by balance >= amount.

        Returns:
            Updated CreditAccount, or None if the balance was insufficient
        """
        pass

    @abstractmethod
    async def credit(self, account_id: int, amount: int, now: datetime) -> CreditAccount:
        """
        Atomically add credits

        Increments balance and total_earned in one statement.

        Returns:
            Updated CreditAccount
        """
        pass

    @abstractmethod
    async def reset_daily_usage(
        self, account_id: int, as_of: date, now: datetime
    ) -> Optional[CreditAccount]:
        """
        Zero daily_used if the account was last reset before as_of

        Returns:
            Updated CreditAccount, or None if already reset on or after as_of
        """
        pass

    @abstractmethod
    async def get_due_for_reset(
        self, as_of: date, limit: int = 500, after_id: int = 0
    ) -> List[CreditAccount]:
        """
        Retrieve accounts whose last_reset_date is before as_of

        Keyset-paginated by id so batches stay stable while rows are reset.
        """
        pass

    @abstractmethod
    async def get_batch(self, limit: int = 500, after_id: int = 0) -> List[CreditAccount]:
        """Retrieve accounts ordered by id, starting after after_id"""
        pass

    @abstractmethod
    async def adjust_balance(self, account_id: int, delta: int, now: datetime) -> Optional[CreditAccount]:
        """
        Atomically move the balance by a signed delta

        A positive delta is booked to total_earned and a negative one to
        total_spent, so balance == total_earned - total_spent still holds.
        daily_used is not touched.

        Returns:
            Updated CreditAccount, or None if the balance would go negative
        """
        pass

    @abstractmethod
    async def set_daily_limit(self, account_id: int, daily_limit: int, now: datetime) -> CreditAccount:
        """Replace the daily allowance"""
        pass

    @abstractmethod
    async def clear_daily_usage(self, account_id: int, as_of: date, now: datetime) -> CreditAccount:
        """Zero daily_used and stamp last_reset_date unconditionally"""
        pass

    @abstractmethod
    async def list_page(
        self, offset: int, limit: int, search: Optional[str] = None
    ) -> List[CreditAccount]:
        """
        Retrieve a page of accounts, heaviest spenders first

        Args:
            offset: Rows to skip
            limit: Page size
            search: Case-insensitive substring of user_id
        """
        pass

    @abstractmethod
    async def count(self, search: Optional[str] = None) -> int:
        """Number of accounts, optionally filtered like list_page"""
        pass
