"""Integration tests for the daily reset scheduler

Tests cover:
- ResetAllDue resets accounts from a previous day, once
- ResetIfDue is idempotent
- Opportunistic reset on first action of the day
- GrantDailyBonus credits subscribers once per day
- Overlapping sweeps and a sweep racing consumers
"""

import asyncio
import pytest
from datetime import date, datetime

from src.adapter.services.clock import FixedClock
from src.app.use_cases.credits import (
    AccountDefaults,
    AllocateCredits,
    ConsumeCommandDTO,
    ErrorCode,
    GetBalance,
    GrantDailyBonus,
    ResetAllDue,
    ResetIfDue,
)
from src.domain.ledger_event import LedgerEventType

YESTERDAY = FixedClock(datetime(2024, 1, 1, 20, 0, 0))


def _reset_all(context, clock):
    return ResetAllDue(
        context.uow, context.account_repo, context.event_repo, clock,
        batch_size=2, retry_policy=context.retry_policy,
    )


@pytest.mark.asyncio
class TestResetAllDueIntegration:

    async def test_resets_yesterdays_usage_once(self, db_session, make_ledger, clock):
        """
        Given: Account with daily_used=300, last_reset_date yesterday
        When: The daily reset runs today, twice
        Then: daily_used=0, last_reset_date=today, exactly one reset event
        """
        # Arrange
        before = make_ledger(db_session, YESTERDAY)
        await before.consume.execute(ConsumeCommandDTO(user_id="u1", amount=300))
        today = make_ledger(db_session)

        # Act
        first = await _reset_all(today, clock).execute()
        second = await _reset_all(today, clock).execute()

        # Assert
        assert first.value.accounts_reset == 1
        assert second.value.accounts_checked == 0
        assert second.value.accounts_reset == 0

        balance = await today.get_balance.execute("u1")
        assert balance.value.daily_used == 0
        assert balance.value.last_reset_date == date(2024, 1, 2)
        assert balance.value.balance == 200

        listing = await today.list_transactions.execute("u1", limit=50)
        resets = [t for t in listing.value.transactions if t.event_type == "reset"]
        assert len(resets) == 1
        assert resets[0].amount == 0
        assert resets[0].reference == "daily-reset-2024-01-02"

    async def test_sweep_covers_every_due_account(self, db_session, make_ledger, clock):
        before = make_ledger(db_session, YESTERDAY)
        for user_id in ("a", "b", "c", "d", "e"):
            await before.get_balance.execute(user_id)
        today = make_ledger(db_session)
        await today.get_balance.execute("fresh")

        result = await _reset_all(today, clock).execute()

        assert result.value.accounts_checked == 5
        assert result.value.accounts_reset == 5
        assert result.value.accounts_failed == 0

    async def test_first_action_of_day_heals_missed_reset(self, db_session, make_ledger):
        before = make_ledger(db_session, YESTERDAY)
        await before.consume.execute(ConsumeCommandDTO(user_id="u1", amount=300))
        today = make_ledger(db_session)

        result = await today.consume.execute(ConsumeCommandDTO(user_id="u1", amount=10))

        assert result.is_ok()
        balance = await today.get_balance.execute("u1")
        assert balance.value.daily_used == 10
        assert balance.value.balance == 190



@pytest.mark.asyncio
class TestResetConcurrency:
    """Overlapping sweeps and sweeps racing consumers, each on its own session"""

    async def test_overlapping_sweeps_reset_each_account_once(self, session_factory, make_ledger, clock):
        """
        Given: Six accounts last reset yesterday
        When: Two ResetAllDue runs execute concurrently
        Then: Every account is reset exactly once across both runs
        """
        # Arrange
        users = [f"user-{i}" for i in range(6)]
        async with session_factory() as session:
            before = make_ledger(session, YESTERDAY)
            for user_id in users:
                await before.consume.execute(ConsumeCommandDTO(user_id=user_id, amount=100))

        async def sweep():
            async with session_factory() as session:
                return await _reset_all(make_ledger(session), clock).execute()

        # Act
        results = await asyncio.gather(sweep(), sweep())

        # Assert
        assert all(r.is_ok() for r in results)
        assert sum(r.value.accounts_reset for r in results) == 6
        assert sum(r.value.accounts_failed for r in results) == 0

        async with session_factory() as session:
            context = make_ledger(session)
            for user_id in users:
                listing = await context.list_transactions.execute(user_id)
                resets = [
                    t for t in listing.value.transactions
                    if t.event_type == LedgerEventType.RESET.value
                ]
                assert len(resets) == 1
                assert resets[0].reference == "daily-reset-2024-01-02"

                balance = await context.get_balance.execute(user_id)
                assert balance.value.daily_used == 0
                assert balance.value.balance == 400

    async def test_sweep_racing_consumers_loses_no_spend(self, session_factory, make_ledger, clock):
        """
        Given: Account with 300 used yesterday and balance 200
        When: A reset sweep runs while three consumers each spend 50
        Then: Every spend is kept, today's usage counts only today and the ledger conserves
        """
        # Arrange
        async with session_factory() as session:
            await make_ledger(session, YESTERDAY).consume.execute(
                ConsumeCommandDTO(user_id="racer", amount=300)
            )

        async def sweep():
            async with session_factory() as session:
                return await _reset_all(make_ledger(session), clock).execute()

        async def consume_once(i):
            async with session_factory() as session:
                return await make_ledger(session).consume.execute(
                    ConsumeCommandDTO(user_id="racer", amount=50, reference=f"race-{i}")
                )

        # Act
        results = await asyncio.gather(sweep(), *(consume_once(i) for i in range(3)))

        # Assert
        assert results[0].is_ok()
        assert all(r.is_ok() for r in results[1:])

        async with session_factory() as session:
            context = make_ledger(session)
            balance = await context.get_balance.execute("racer")
            assert balance.value.balance == 50
            assert balance.value.total_spent == 450
            assert balance.value.total_earned - balance.value.total_spent == 50
            assert balance.value.daily_used == 150
            assert balance.value.last_reset_date == date(2024, 1, 2)

            listing = await context.list_transactions.execute("racer")
            resets = [t for t in listing.value.transactions if t.event_type == LedgerEventType.RESET.value]
            assert len(resets) == 1

            account = await context.account_repo.get_by_user_id("racer")
            assert await context.event_repo.get_amount_sum_by_account(account.id) == 50
            await context.uow.rollback()

@pytest.mark.asyncio
class TestResetIfDueIntegration:

    async def test_reset_if_due_is_idempotent(self, db_session, make_ledger, clock):
        before = make_ledger(db_session, YESTERDAY)
        await before.consume.execute(ConsumeCommandDTO(user_id="u1", amount=50))
        context = make_ledger(db_session)
        use_case = ResetIfDue(context.uow, context.account_repo, context.event_repo, clock)

        first = await use_case.execute("u1")
        second = await use_case.execute("u1")

        assert first.value.reset_performed is True
        assert second.value.reset_performed is False
        assert second.value.daily_used == 0

    async def test_reset_unknown_user(self, db_session, make_ledger, clock):
        context = make_ledger(db_session)
        use_case = ResetIfDue(context.uow, context.account_repo, context.event_repo, clock)

        result = await use_case.execute("ghost")

        assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND


@pytest.mark.asyncio
class TestGrantDailyBonusIntegration:

    async def test_subscribers_receive_bonus_once_per_day(self, db_session, make_ledger, clock):
        """
        Given: A subscriber (daily_limit 2000) and a free-tier user
        When: The daily bonus runs twice on the same day
        Then: Only the subscriber is credited, and only once
        """
        # Arrange
        context = make_ledger(db_session)
        subscriber_balance = GetBalance(
            context.uow, context.account_repo, context.event_repo, clock,
            defaults=AccountDefaults(balance=500, daily_limit=2000),
        )
        await subscriber_balance.execute("pro_user")
        await context.get_balance.execute("free_user")

        allocate = AllocateCredits(context.uow, context.account_repo, context.event_repo, clock)
        bonus = GrantDailyBonus(
            context.uow, context.account_repo, context.event_repo, clock,
            allocate_credits=allocate, bonus_credits=10,
        )

        # Act
        first = await bonus.execute()
        second = await bonus.execute()

        # Assert
        assert first.value.accounts_eligible == 1
        assert first.value.accounts_credited == 1
        assert first.value.credits_added == 10
        assert second.value.accounts_credited == 0
        assert second.value.accounts_skipped == 1

        pro = await context.get_balance.execute("pro_user")
        free = await context.get_balance.execute("free_user")
        assert pro.value.balance == 510
        assert pro.value.total_earned == 510
        assert free.value.balance == 500

        listing = await context.list_transactions.execute("pro_user")
        bonus_event = listing.value.transactions[0]
        assert bonus_event.event_type == LedgerEventType.DAILY_BONUS.value
        assert bonus_event.event_date == date(2024, 1, 2)
        assert bonus_event.metadata == {"bonus_date": "2024-01-02"}
