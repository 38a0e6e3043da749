"""DeactivatePackage Use Case

Retires a package from sale. Packages are never edited or deleted so past
purchase events keep pointing at accurate catalog data.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_package_repository import CreditPackageRepository
from .errors import ErrorCode
from .dtos import PackageDTO
from .list_packages import to_package_dto

logger = logging.getLogger(__name__)


class DeactivatePackage:

    def __init__(self, uow: UnitOfWork, package_repo: CreditPackageRepository):
        self.uow = uow
        self.package_repo = package_repo

    async def execute(self, package_id: int) -> Result[PackageDTO]:
        try:
            package = await self.package_repo.deactivate(package_id)
            if package is None:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.PACKAGE_NOT_FOUND,
                        message=f"Credit package {package_id} not found",
                    )
                )
            response = to_package_dto(package)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message="Failed to deactivate credit package",
                    reason=str(e),
                )
            )

        logger.info(f"Deactivated credit package {package_id}")
        return Return.ok(response)
