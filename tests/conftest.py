import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.clock import FixedClock
from src.domain.credit_account import CreditAccount


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 2, 9, 30, 0)


@pytest.fixture
def clock(fixed_now):
    """Clock pinned to 2024-01-02 09:30 UTC"""
    return FixedClock(fixed_now)


@pytest.fixture
def make_account(fixed_now):
    """Factory for CreditAccount entities already reset for today"""

    def _make(**overrides):
        fields = dict(
            id=1,
            user_id="user_123",
            balance=500,
            daily_limit=500,
            daily_used=0,
            total_earned=500,
            total_spent=0,
            last_reset_date=fixed_now.date(),
            created_at=datetime(2024, 1, 1, 0, 0, 0),
            updated_at=datetime(2024, 1, 1, 0, 0, 0),
        )
        fields.update(overrides)
        return CreditAccount(**fields)

    return _make


@pytest.fixture
def yesterday(fixed_now):
    return date(2024, 1, 1)
