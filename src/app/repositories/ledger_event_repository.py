"""Ledger Event Repository Interface

Defines the contract for ledger event persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional
from src.domain.ledger_event import LedgerEvent, LedgerEventType


class LedgerEventRepository(ABC):
    """
    Repository interface for LedgerEvent persistence

    Events are immutable and append-only: there is no update or delete.
    Idempotency is enforced via the unique (user_id, event_type, reference).
    """

    @abstractmethod
    async def create(self, event: LedgerEvent) -> LedgerEvent:
        """
        Append a new ledger event

        Raises:
            IntegrityError: If (user_id, event_type, reference) already exists
        """
        pass

    @abstractmethod
    async def get_by_reference(
        self, user_id: str, event_type: LedgerEventType, reference: str
    ) -> Optional[LedgerEvent]:
        """Retrieve the event recorded for an idempotency reference"""
        pass

    @abstractmethod
    async def exists_for_date(
        self, user_id: str, event_type: LedgerEventType, event_date: date
    ) -> bool:
        """Check whether the user already has an event of this type for the day"""
        pass

    @abstractmethod
    async def get_by_user_id(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[LedgerEvent]:
        """Retrieve a user's events, newest first"""
        pass

    @abstractmethod
    async def get_amount_sum_by_account(self, account_id: int) -> int:
        """Sum of all event amounts for an account (0 when none)"""
        pass

    @abstractmethod
    async def count_distinct_users(
        self, event_date: date, event_type: Optional[LedgerEventType] = None
    ) -> int:
        """Number of users with events on a day, optionally of one type"""
        pass

    @abstractmethod
    async def count_by_type(self, event_type: LedgerEventType, event_date: date) -> int:
        """Number of events of a type on a day"""
        pass

    @abstractmethod
    async def sum_by_type(self, event_type: LedgerEventType, event_date: date) -> int:
        """Sum of event amounts of a type on a day"""
        pass

    @abstractmethod
    async def sum_credits_issued(self) -> int:
        """Sum of all positive amounts"""
        pass

    @abstractmethod
    async def sum_credits_consumed(self) -> int:
        """Absolute sum of all negative amounts"""
        pass
