"""SQLAlchemy implementation of LedgerEventRepository

Append-only persistence for ledger events. Duplicate idempotency references
are rejected by the unique (user_id, event_type, reference) constraint.
"""

from datetime import date
from typing import List, Optional
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.ledger_event_repository import LedgerEventRepository
from src.domain.ledger_event import LedgerEvent, LedgerEventType


class SqlAlchemyLedgerEventRepository(LedgerEventRepository):
    """
    SQLAlchemy implementation of LedgerEventRepository

    Features:
    - Idempotency enforcement via unique constraint
    - Immutable append-only events
    - Aggregates for reconciliation and statistics
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: LedgerEvent) -> LedgerEvent:
        """
        Append a new ledger event

        Raises:
            IntegrityError: If the idempotency reference was already recorded
        """
        self.session.add(event)
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def get_by_reference(
        self, user_id: str, event_type: LedgerEventType, reference: str
    ) -> Optional[LedgerEvent]:
        stmt = select(LedgerEvent).where(
            LedgerEvent.user_id == user_id,
            LedgerEvent.event_type == event_type,
            LedgerEvent.reference == reference,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_for_date(
        self, user_id: str, event_type: LedgerEventType, event_date: date
    ) -> bool:
        stmt = (
            select(LedgerEvent.id)
            .where(
                LedgerEvent.user_id == user_id,
                LedgerEvent.event_type == event_type,
                LedgerEvent.event_date == event_date,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_by_user_id(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[LedgerEvent]:
        stmt = (
            select(LedgerEvent)
            .where(LedgerEvent.user_id == user_id)
            .order_by(LedgerEvent.created_at.desc(), LedgerEvent.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_amount_sum_by_account(self, account_id: int) -> int:
        stmt = select(func.coalesce(func.sum(LedgerEvent.amount), 0)).where(
            LedgerEvent.account_id == account_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_distinct_users(
        self, event_date: date, event_type: Optional[LedgerEventType] = None
    ) -> int:
        stmt = select(func.count(func.distinct(LedgerEvent.user_id))).where(
            LedgerEvent.event_date == event_date
        )
        if event_type is not None:
            stmt = stmt.where(LedgerEvent.event_type == event_type)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_by_type(self, event_type: LedgerEventType, event_date: date) -> int:
        stmt = select(func.count(LedgerEvent.id)).where(
            LedgerEvent.event_type == event_type,
            LedgerEvent.event_date == event_date,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_by_type(self, event_type: LedgerEventType, event_date: date) -> int:
        stmt = select(func.coalesce(func.sum(LedgerEvent.amount), 0)).where(
            LedgerEvent.event_type == event_type,
            LedgerEvent.event_date == event_date,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_credits_issued(self) -> int:
        stmt = select(func.coalesce(func.sum(LedgerEvent.amount), 0)).where(LedgerEvent.amount > 0)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_credits_consumed(self) -> int:
        stmt = select(func.coalesce(func.sum(LedgerEvent.amount), 0)).where(LedgerEvent.amount < 0)
        result = await self.session.execute(stmt)
        return abs(int(result.scalar_one()))
