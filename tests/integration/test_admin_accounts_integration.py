"""Integration tests for admin account listing and adjustments

Tests cover:
- set_balance books compensating events and the ledger still reconciles
- set_daily_limit makes an account eligible for the subscriber bonus
- reset_daily clears usage with an admin_reset event
- Listing orders by total_spent and filters by user_id
"""

import pytest

from src.app.use_cases.credits import (
    AccountAction,
    AdjustAccount,
    AdjustAccountCommandDTO,
    ConsumeCommandDTO,
    DailyLimitSubscriberPredicate,
    ErrorCode,
    GrantDailyBonus,
    ListAccounts,
    ReconcileLedger,
)
from src.domain.ledger_event import LedgerEventType


def _adjust(context, clock):
    return AdjustAccount(
        context.uow, context.account_repo, context.event_repo, clock, retry_policy=context.retry_policy
    )


@pytest.mark.asyncio
class TestAdjustAccountIntegration:

    async def test_set_balance_keeps_ledger_reconciled(self, ledger, clock):
        """
        Given: User spent 120 of the opening 500
        When: Admin sets the balance to 1000, then down to 50
        Then: Totals, balance and event sum agree and reconciliation is clean
        """
        # Arrange
        await ledger.consume.execute(ConsumeCommandDTO(user_id="u1", amount=120))
        adjust = _adjust(ledger, clock)

        # Act
        raised = await adjust.execute(
            AdjustAccountCommandDTO(user_id="u1", action=AccountAction.SET_BALANCE, balance=1000)
        )
        cut = await adjust.execute(
            AdjustAccountCommandDTO(user_id="u1", action=AccountAction.SET_BALANCE, balance=50)
        )

        # Assert
        assert raised.value.adjustment == 620
        assert cut.value.adjustment == -950
        assert cut.value.account.balance == 50
        assert cut.value.account.total_earned == 1120
        assert cut.value.account.total_spent == 1070
        assert cut.value.account.daily_used == 120

        listing = await ledger.list_transactions.execute("u1")
        adjustments = [
            t.amount for t in listing.value.transactions
            if t.event_type == LedgerEventType.ADMIN_ADJUSTMENT.value
        ]
        assert adjustments == [-950, 620]

        result = await ReconcileLedger(ledger.uow, ledger.account_repo, ledger.event_repo).execute()
        assert result.value.discrepancies_found == 0

    async def test_raised_daily_limit_qualifies_for_bonus(self, ledger, clock):
        """
        Given: Two free-tier users
        When: Admin raises one user's daily limit to 2000 and the bonus runs
        Then: Only that user receives the subscriber bonus
        """
        # Arrange
        await ledger.get_balance.execute("pro_user")
        await ledger.get_balance.execute("free_user")
        await _adjust(ledger, clock).execute(
            AdjustAccountCommandDTO(
                user_id="pro_user", action=AccountAction.SET_DAILY_LIMIT, daily_limit=2000
            )
        )
        bonus = GrantDailyBonus(
            ledger.uow, ledger.account_repo, ledger.event_repo, clock,
            allocate_credits=ledger.allocate,
            bonus_credits=10,
            is_subscriber=DailyLimitSubscriberPredicate(500),
        )

        # Act
        result = await bonus.execute()

        # Assert
        assert result.value.accounts_eligible == 1
        assert result.value.accounts_credited == 1

        pro = await ledger.get_balance.execute("pro_user")
        free = await ledger.get_balance.execute("free_user")
        assert pro.value.daily_limit == 2000
        assert pro.value.balance == 510
        assert free.value.balance == 500

    async def test_reset_daily_clears_usage(self, ledger, clock):
        await ledger.consume.execute(ConsumeCommandDTO(user_id="u1", amount=300))

        result = await _adjust(ledger, clock).execute(
            AdjustAccountCommandDTO(user_id="u1", action=AccountAction.RESET_DAILY, reason="support")
        )

        assert result.value.account.daily_used == 0
        assert result.value.account.balance == 200

        listing = await ledger.list_transactions.execute("u1")
        newest = listing.value.transactions[0]
        assert newest.event_type == LedgerEventType.ADMIN_RESET.value
        assert newest.amount == 0
        assert newest.metadata == {"action": "reset_daily", "reason": "support"}

    async def test_unknown_user_is_not_created(self, ledger, clock):
        result = await _adjust(ledger, clock).execute(
            AdjustAccountCommandDTO(user_id="ghost", action=AccountAction.SET_BALANCE, balance=10)
        )

        assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND
        assert await ledger.account_repo.get_by_user_id("ghost") is None
        await ledger.uow.rollback()


@pytest.mark.asyncio
class TestListAccountsIntegration:

    async def test_heaviest_spenders_first_with_search(self, ledger):
        """
        Given: Three users who spent 50, 300 and 120
        When: Accounts are listed two per page, then searched
        Then: Order is by total_spent descending and search narrows by user_id
        """
        # Arrange
        for user_id, amount in [("acme-a", 50), ("acme-b", 300), ("other", 120)]:
            await ledger.consume.execute(ConsumeCommandDTO(user_id=user_id, amount=amount))
        list_accounts = ListAccounts(ledger.uow, ledger.account_repo, retry_policy=ledger.retry_policy)

        # Act
        first_page = await list_accounts.execute(page=1, limit=2)
        second_page = await list_accounts.execute(page=2, limit=2)
        searched = await list_accounts.execute(search="ACME")

        # Assert
        assert [a.user_id for a in first_page.value.accounts] == ["acme-b", "other"]
        assert first_page.value.total_count == 3
        assert first_page.value.total_pages == 2
        assert first_page.value.has_next is True
        assert [a.user_id for a in second_page.value.accounts] == ["acme-a"]
        assert second_page.value.has_next is False
        assert [a.user_id for a in searched.value.accounts] == ["acme-b", "acme-a"]
        assert searched.value.total_count == 2
