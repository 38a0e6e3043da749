"""SQLAlchemy implementation of CreditPackageRepository"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_package_repository import CreditPackageRepository
from src.domain.credit_package import CreditPackage


class SqlAlchemyCreditPackageRepository(CreditPackageRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, package: CreditPackage) -> CreditPackage:
        self.session.add(package)
        await self.session.flush()
        await self.session.refresh(package)
        return package

    async def get_by_id(self, package_id: int) -> Optional[CreditPackage]:
        stmt = select(CreditPackage).where(CreditPackage.id == package_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self) -> List[CreditPackage]:
        stmt = (
            select(CreditPackage)
            .where(CreditPackage.is_active == True)  # noqa: E712
            .order_by(CreditPackage.credits.asc(), CreditPackage.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def deactivate(self, package_id: int) -> Optional[CreditPackage]:
        package = await self.get_by_id(package_id)
        if package is None:
            return None

        if package.is_active:
            package.is_active = False
            package.updated_at = datetime.utcnow()
            self.session.add(package)
            await self.session.flush()
        return package
