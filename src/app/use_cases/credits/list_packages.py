"""ListActivePackages Use Case

Returns the purchasable credit packages for display.
"""

from libs.result import Result, Return, Error
from src.app.repositories.credit_package_repository import CreditPackageRepository
from src.domain.credit_package import CreditPackage
from .errors import ErrorCode
from .dtos import PackageDTO


def to_package_dto(package: CreditPackage) -> PackageDTO:
    return PackageDTO(
        id=package.id,
        name=package.name,
        description=package.description,
        credits=package.credits,
        bonus_credits=package.bonus_credits or 0,
        total_credits=package.total_credits,
        price=package.price,
        currency=package.currency,
        is_active=package.is_active,
        is_popular=package.is_popular,
    )


class ListActivePackages:
    """Active packages ordered by credits ascending, with total_credits computed"""

    def __init__(self, package_repo: CreditPackageRepository):
        self.package_repo = package_repo

    async def execute(self) -> Result[list[PackageDTO]]:
        try:
            packages = await self.package_repo.get_active()
        except Exception as e:
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR,
                    message="Failed to list credit packages",
                    reason=str(e),
                )
            )

        return Return.ok([to_package_dto(package) for package in packages])
