"""SQLAlchemy implementation of CreditAccountRepository

Balance mutations are conditional UPDATE statements so concurrent callers
serialize on the account row and the balance guard is evaluated by the
database, not by the application.
"""

from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.domain.credit_account import CreditAccount


class SqlAlchemyCreditAccountRepository(CreditAccountRepository):
    """
    SQLAlchemy implementation of CreditAccountRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Guarded single-statement balance updates
    - Savepoint-protected lazy creation
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[CreditAccount]:
        stmt = select(CreditAccount).where(CreditAccount.user_id == user_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[CreditAccount]:
        stmt = select(CreditAccount).where(CreditAccount.id == account_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_if_absent(self, account: CreditAccount) -> Optional[CreditAccount]:
        """
        Insert the account inside a savepoint

        A unique violation on user_id means another request created the
        account first; only the savepoint is rolled back so the caller's
        transaction stays usable.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(account)
                await self.session.flush()
        except IntegrityError:
            return None

        await self.session.refresh(account)
        return account

    async def debit(self, account_id: int, amount: int, now: datetime) -> Optional[CreditAccount]:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id, CreditAccount.balance >= amount)
            .values(
                balance=CreditAccount.balance - amount,
                total_spent=CreditAccount.total_spent + amount,
                daily_used=CreditAccount.daily_used + amount,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self._reload(account_id)

    async def credit(self, account_id: int, amount: int, now: datetime) -> CreditAccount:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id)
            .values(
                balance=CreditAccount.balance + amount,
                total_earned=CreditAccount.total_earned + amount,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return await self._reload(account_id)

    async def reset_daily_usage(
        self, account_id: int, as_of: date, now: datetime
    ) -> Optional[CreditAccount]:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id, CreditAccount.last_reset_date < as_of)
            .values(daily_used=0, last_reset_date=as_of, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self._reload(account_id)

    async def get_due_for_reset(
        self, as_of: date, limit: int = 500, after_id: int = 0
    ) -> List[CreditAccount]:
        stmt = (
            select(CreditAccount)
            .where(CreditAccount.last_reset_date < as_of, CreditAccount.id > after_id)
            .order_by(CreditAccount.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_batch(self, limit: int = 500, after_id: int = 0) -> List[CreditAccount]:
        stmt = (
            select(CreditAccount)
            .where(CreditAccount.id > after_id)
            .order_by(CreditAccount.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def adjust_balance(self, account_id: int, delta: int, now: datetime) -> Optional[CreditAccount]:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id, CreditAccount.balance + delta >= 0)
            .values(
                balance=CreditAccount.balance + delta,
                total_earned=CreditAccount.total_earned + max(delta, 0),
                total_spent=CreditAccount.total_spent + max(-delta, 0),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self._reload(account_id)

    async def set_daily_limit(self, account_id: int, daily_limit: int, now: datetime) -> CreditAccount:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id)
            .values(daily_limit=daily_limit, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return await self._reload(account_id)

    async def clear_daily_usage(self, account_id: int, as_of: date, now: datetime) -> CreditAccount:
        stmt = (
            update(CreditAccount)
            .where(CreditAccount.id == account_id)
            .values(daily_used=0, last_reset_date=as_of, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return await self._reload(account_id)

    async def list_page(
        self, offset: int, limit: int, search: Optional[str] = None
    ) -> List[CreditAccount]:
        stmt = self._filtered(select(CreditAccount), search)
        stmt = (
            stmt.order_by(CreditAccount.total_spent.desc(), CreditAccount.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, search: Optional[str] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(CreditAccount), search)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    def _filtered(self, stmt, search: Optional[str]):
        if search:
            stmt = stmt.where(CreditAccount.user_id.icontains(search, autoescape=True))
        return stmt

    async def _reload(self, account_id: int) -> CreditAccount:
        """Re-read the row so the identity map reflects the UPDATE"""
        stmt = (
            select(CreditAccount)
            .where(CreditAccount.id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
