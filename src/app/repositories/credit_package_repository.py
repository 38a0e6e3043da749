"""Credit Package Repository Interface

Defines the contract for credit package catalog persistence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.credit_package import CreditPackage


class CreditPackageRepository(ABC):

    @abstractmethod
    async def create(self, package: CreditPackage) -> CreditPackage:
        """Persist a new package and return it with its generated ID"""
        pass

    @abstractmethod
    async def get_by_id(self, package_id: int) -> Optional[CreditPackage]:
        pass

    @abstractmethod
    async def get_active(self) -> List[CreditPackage]:
        """Active packages ordered by credits ascending"""
        pass

    @abstractmethod
    async def deactivate(self, package_id: int) -> Optional[CreditPackage]:
        """Mark a package inactive; None if it does not exist"""
        pass
