"""CreatePackage Use Case

Adds a package to the catalog. Callers are expected to have checked the
admin role already.
"""

import logging
from typing import Any, Dict
from pydantic import ValidationError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_package_repository import CreditPackageRepository
from src.domain.credit_package import CreditPackage
from .errors import ErrorCode
from .dtos import CreatePackageCommandDTO, PackageDTO
from .list_packages import to_package_dto

logger = logging.getLogger(__name__)


class CreatePackage:
    """
    Use Case: Create a credit package

    Business Rules:
    1. name, description, credits and price are required
    2. credits, bonus_credits and price must be non-negative
    3. New packages are active
    """

    def __init__(self, uow: UnitOfWork, package_repo: CreditPackageRepository):
        self.uow = uow
        self.package_repo = package_repo

    async def execute(self, fields: Dict[str, Any]) -> Result[PackageDTO]:
        try:
            command = CreatePackageCommandDTO.model_validate(fields)
        except ValidationError as e:
            return Return.err(
                Error(
                    code=ErrorCode.VALIDATION_ERROR,
                    message="Invalid credit package fields",
                    reason="; ".join(
                        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ),
                )
            )

        try:
            package = await self.package_repo.create(
                CreditPackage(
                    name=command.name,
                    description=command.description,
                    credits=command.credits,
                    bonus_credits=command.bonus_credits,
                    price=command.price,
                    currency=command.currency.upper(),
                    is_active=True,
                    is_popular=command.is_popular,
                )
            )
            response = to_package_dto(package)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message="Failed to create credit package",
                    reason=str(e),
                )
            )

        logger.info(f"Created credit package {response.id} ({response.name})")
        return Return.ok(response)
