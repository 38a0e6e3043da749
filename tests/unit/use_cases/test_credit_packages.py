"""Unit tests for the credit package catalog use cases

Tests cover:
- ListActivePackages with computed total_credits
- CreatePackage validation and persistence
- DeactivatePackage
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.credits.list_packages import ListActivePackages
from src.app.use_cases.credits.create_package import CreatePackage
from src.app.use_cases.credits.deactivate_package import DeactivatePackage
from src.app.use_cases.credits.errors import ErrorCode
from src.domain.credit_package import CreditPackage


def _package(**overrides):
    fields = dict(
        id=1,
        name="Starter",
        description="Starter pack",
        credits=100,
        bonus_credits=0,
        price=Decimal("10000.00"),
        currency="IDR",
        is_active=True,
        is_popular=False,
    )
    fields.update(overrides)
    return CreditPackage(**fields)


@pytest.fixture
def mock_package_repo():
    return MagicMock()


@pytest.mark.asyncio
class TestListActivePackages:

    async def test_returns_active_packages_with_total_credits(self, mock_package_repo):
        """
        Given: Two active packages, one with bonus credits
        When: Active packages are listed
        Then: total_credits = credits + bonus_credits, order preserved
        """
        mock_package_repo.get_active = AsyncMock(
            return_value=[
                _package(id=1, credits=100),
                _package(id=2, name="Pro", credits=1000, bonus_credits=100, is_popular=True),
            ]
        )

        result = await ListActivePackages(mock_package_repo).execute()

        assert result.is_ok()
        packages = result.value
        assert [p.id for p in packages] == [1, 2]
        assert packages[0].total_credits == 100
        assert packages[1].total_credits == 1100
        assert packages[1].is_popular is True

    async def test_storage_failure(self, mock_package_repo):
        mock_package_repo.get_active = AsyncMock(side_effect=Exception("boom"))

        result = await ListActivePackages(mock_package_repo).execute()

        assert result.is_err()
        assert result.error.code == ErrorCode.STORAGE_ERROR


@pytest.mark.asyncio
class TestCreatePackage:

    async def test_creates_active_package(self, mock_uow, mock_package_repo):
        async def _create(package):
            package.id = 5
            return package

        mock_package_repo.create = AsyncMock(side_effect=_create)

        result = await CreatePackage(mock_uow, mock_package_repo).execute(
            {
                "name": "Pro Pack",
                "description": "Professional package",
                "credits": 1500,
                "price": "99000",
                "currency": "idr",
            }
        )

        assert result.is_ok()
        package = result.value
        assert package.id == 5
        assert package.is_active is True
        assert package.bonus_credits == 0
        assert package.total_credits == 1500
        assert package.price == Decimal("99000")
        assert package.currency == "IDR"
        mock_uow.commit.assert_called_once()

    @pytest.mark.parametrize(
        "fields",
        [
            {"description": "no name", "credits": 10, "price": "1"},
            {"name": "Neg", "description": "negative", "credits": -1, "price": "1"},
            {"name": "Neg", "description": "negative bonus", "credits": 1, "bonus_credits": -5, "price": "1"},
            {"name": "Neg", "description": "negative price", "credits": 1, "price": "-1"},
        ],
    )
    async def test_invalid_fields_rejected(self, mock_uow, mock_package_repo, fields):
        mock_package_repo.create = AsyncMock()

        result = await CreatePackage(mock_uow, mock_package_repo).execute(fields)

        assert result.is_err()
        assert result.error.code == ErrorCode.VALIDATION_ERROR
        mock_package_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
class TestDeactivatePackage:

    async def test_deactivates_package(self, mock_uow, mock_package_repo):
        mock_package_repo.deactivate = AsyncMock(return_value=_package(is_active=False))

        result = await DeactivatePackage(mock_uow, mock_package_repo).execute(1)

        assert result.is_ok()
        assert result.value.is_active is False
        mock_uow.commit.assert_called_once()

    async def test_unknown_package(self, mock_uow, mock_package_repo):
        mock_package_repo.deactivate = AsyncMock(return_value=None)

        result = await DeactivatePackage(mock_uow, mock_package_repo).execute(404)

        assert result.is_err()
        assert result.error.code == ErrorCode.PACKAGE_NOT_FOUND
        mock_uow.commit.assert_not_called()
