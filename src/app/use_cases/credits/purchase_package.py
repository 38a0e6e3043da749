"""PurchasePackage Use Case

Credits a catalog package to a user once its payment has been confirmed.
The payment gateway transaction id is the idempotency reference.
"""

from typing import Optional, Union
from libs.result import Result, Return, Error
from src.app.repositories.credit_package_repository import CreditPackageRepository
from src.domain.event_metadata import PurchaseMetadata, dump_event_metadata
from .allocate_credits import AllocateCredits
from .errors import ErrorCode
from .retry import RetryPolicy, run_with_retry
from .dtos import PurchasePackageCommandDTO, CreditCommandDTO, CreditResponseDTO


class PurchasePackage:
    """
    Use Case: Grant a purchased credit package

    Business Rules:
    1. A payment reference already credited returns the prior result, even if
       the package has since been deactivated
    2. Otherwise the package must exist (PACKAGE_NOT_FOUND) and be active (PACKAGE_INACTIVE)
    3. Grants credits + bonus_credits in a single ledger event
    """

    def __init__(
        self,
        package_repo: CreditPackageRepository,
        allocate_credits: AllocateCredits,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.package_repo = package_repo
        self.allocate_credits = allocate_credits
        self.retry_policy = retry_policy or RetryPolicy()

    async def execute(self, command: PurchasePackageCommandDTO) -> Result[CreditResponseDTO]:
        lookup = await run_with_retry(
            self.allocate_credits.uow,
            lambda: self._replay_or_build(command),
            "purchase_package",
            self.retry_policy,
        )
        if lookup.is_err() or isinstance(lookup.value, CreditResponseDTO):
            return lookup

        return await self.allocate_credits.execute(lookup.value)

    async def _replay_or_build(
        self, command: PurchasePackageCommandDTO
    ) -> Result[Union[CreditResponseDTO, CreditCommandDTO]]:
        prior = await self.allocate_credits.replay(
            command.user_id, command.event_type, command.reference
        )
        if prior is not None:
            return prior

        return await self._build_credit_command(command)

    async def _build_credit_command(self, command: PurchasePackageCommandDTO) -> Result[CreditCommandDTO]:
        package = await self.package_repo.get_by_id(command.package_id)

        if package is None:
            return Return.err(
                Error(
                    code=ErrorCode.PACKAGE_NOT_FOUND,
                    message=f"Credit package {command.package_id} not found",
                )
            )

        if not package.is_active:
            return Return.err(
                Error(
                    code=ErrorCode.PACKAGE_INACTIVE,
                    message=f"Credit package {package.name} is no longer available",
                    reason=f"package_id={package.id}",
                )
            )

        metadata = PurchaseMetadata.model_validate({
            **(command.metadata or {}),
            "package_id": package.id,
            "package_name": package.name,
            "base_credits": package.credits,
            "bonus_credits": package.bonus_credits,
            "price": package.price,
            "currency": package.currency,
            "payment_method": command.payment_method,
            "gateway_reference": command.reference,
        })

        return Return.ok(
            CreditCommandDTO(
                user_id=command.user_id,
                amount=package.total_credits,
                event_type=command.event_type,
                description=f"Credit purchase: {package.name}",
                reference=command.reference,
                metadata=dump_event_metadata(metadata),
            )
        )
