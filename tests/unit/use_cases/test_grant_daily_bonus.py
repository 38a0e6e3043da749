"""Unit tests for GrantDailyBonus use case"""

import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return, Error
from src.app.use_cases.credits.grant_daily_bonus import (
    GrantDailyBonus,
    DailyLimitSubscriberPredicate,
    bonus_reference,
)
from src.app.use_cases.credits.dtos import CreditResponseDTO
from src.app.use_cases.credits.errors import ErrorCode
from src.domain.ledger_event import LedgerEventType


def _credited(user_id):
    return Return.ok(
        CreditResponseDTO(
            transaction_id=1,
            user_id=user_id,
            event_type="daily_bonus",
            amount=10,
            balance_after=510,
            reference="daily-bonus-2024-01-02",
            created_at=datetime(2024, 1, 2, 9, 30, 0),
        )
    )


@pytest.fixture
def mock_account_repo():
    return MagicMock()


@pytest.fixture
def mock_event_repo():
    repo = MagicMock()
    repo.exists_for_date = AsyncMock(return_value=False)
    return repo


@pytest.fixture
def mock_allocate():
    allocate = MagicMock()
    allocate.execute = AsyncMock(side_effect=lambda command: _credited(command.user_id))
    return allocate


@pytest.fixture
def accounts(make_account):
    """One free-tier and two subscriber accounts"""
    return [
        make_account(id=1, user_id="free_user", daily_limit=500),
        make_account(id=2, user_id="pro_user", daily_limit=2000),
        make_account(id=3, user_id="team_user", daily_limit=5000),
    ]


@pytest.fixture
def bonus_use_case(mock_uow, mock_account_repo, mock_event_repo, clock, mock_allocate):
    return GrantDailyBonus(
        uow=mock_uow,
        account_repo=mock_account_repo,
        event_repo=mock_event_repo,
        clock=clock,
        allocate_credits=mock_allocate,
        bonus_credits=10,
    )


class TestSubscriberPredicate:

    def test_daily_limit_above_threshold_is_subscriber(self, make_account):
        predicate = DailyLimitSubscriberPredicate(threshold=500)

        assert predicate(make_account(daily_limit=501))
        assert not predicate(make_account(daily_limit=500))

    def test_bonus_reference_is_per_day(self):
        assert bonus_reference(date(2024, 1, 2)) == "daily-bonus-2024-01-02"


@pytest.mark.asyncio
class TestGrantDailyBonus:

    async def test_credits_only_subscribers(
        self, bonus_use_case, mock_account_repo, mock_allocate, accounts
    ):
        """
        Given: One free-tier account and two subscribers
        When: The daily bonus runs
        Then: Only the subscribers receive a strict daily_bonus credit
        """
        # Arrange
        mock_account_repo.get_batch = AsyncMock(side_effect=[accounts, []])

        # Act
        result = await bonus_use_case.execute()

        # Assert
        assert result.is_ok()
        summary = result.value
        assert summary.as_of == date(2024, 1, 2)
        assert summary.accounts_checked == 3
        assert summary.accounts_eligible == 2
        assert summary.accounts_credited == 2
        assert summary.credits_added == 20

        commands = [c.args[0] for c in mock_allocate.execute.call_args_list]
        assert [c.user_id for c in commands] == ["pro_user", "team_user"]
        for command in commands:
            assert command.event_type == LedgerEventType.DAILY_BONUS
            assert command.amount == 10
            assert command.reference == "daily-bonus-2024-01-02"
            assert command.effective_date == date(2024, 1, 2)
            assert command.strict is True
            assert command.metadata == {"bonus_date": "2024-01-02"}

    async def test_already_granted_today_is_skipped(
        self, bonus_use_case, mock_account_repo, mock_event_repo, mock_allocate, accounts
    ):
        mock_account_repo.get_batch = AsyncMock(side_effect=[accounts, []])
        mock_event_repo.exists_for_date = AsyncMock(side_effect=[True, False])

        result = await bonus_use_case.execute()

        assert result.value.accounts_skipped == 1
        assert result.value.accounts_credited == 1
        assert mock_allocate.execute.call_count == 1
        mock_event_repo.exists_for_date.assert_any_call(
            "pro_user", LedgerEventType.DAILY_BONUS, date(2024, 1, 2)
        )

    async def test_duplicate_reference_from_overlapping_run_is_skipped(
        self, bonus_use_case, mock_account_repo, mock_allocate, accounts
    ):
        mock_account_repo.get_batch = AsyncMock(side_effect=[accounts, []])
        mock_allocate.execute = AsyncMock(
            return_value=Return.err(Error(code=ErrorCode.DUPLICATE_REFERENCE, message="dup"))
        )

        result = await bonus_use_case.execute()

        assert result.value.accounts_skipped == 2
        assert result.value.accounts_credited == 0
        assert result.value.credits_added == 0

    async def test_allocation_failure_is_counted(
        self, bonus_use_case, mock_account_repo, mock_allocate, accounts
    ):
        mock_account_repo.get_batch = AsyncMock(side_effect=[accounts, []])
        mock_allocate.execute = AsyncMock(
            side_effect=[
                Return.err(Error(code=ErrorCode.STORAGE_ERROR, message="locked")),
                _credited("team_user"),
            ]
        )

        result = await bonus_use_case.execute()

        assert result.value.accounts_failed == 1
        assert result.value.accounts_credited == 1

    async def test_custom_subscriber_predicate(
        self, mock_uow, mock_account_repo, mock_event_repo, clock, mock_allocate, accounts
    ):
        mock_account_repo.get_batch = AsyncMock(side_effect=[accounts, []])
        use_case = GrantDailyBonus(
            uow=mock_uow,
            account_repo=mock_account_repo,
            event_repo=mock_event_repo,
            clock=clock,
            allocate_credits=mock_allocate,
            bonus_credits=25,
            is_subscriber=lambda account: account.user_id == "free_user",
        )

        result = await use_case.execute(as_of=date(2024, 1, 5))

        assert result.value.accounts_credited == 1
        assert result.value.credits_added == 25
        command = mock_allocate.execute.call_args.args[0]
        assert command.user_id == "free_user"
        assert command.reference == "daily-bonus-2024-01-05"

    async def test_load_failure_returns_storage_error(self, bonus_use_case, mock_account_repo):
        mock_account_repo.get_batch = AsyncMock(side_effect=Exception("connection refused"))

        result = await bonus_use_case.execute()

        assert result.is_err()
        assert result.error.code == ErrorCode.STORAGE_ERROR
