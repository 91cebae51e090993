"""
Tests for the spending limit guard.

All tests run at a frozen "now" of Wednesday 2024-05-15 12:00 UTC, so the
calendar week is 2024-05-13..2024-05-20 and the month is May 2024.
"""

from datetime import datetime, timezone as dt_timezone

import pytest
from freezegun import freeze_time

from ledger.exceptions import LimitExceededError
from ledger.limits import LimitValidationService
from ledger.models import LimitPeriod, TransactionType
from ledger.periods import RollingPeriodResolver
from ledger.tests.factories import AccountLimitFactory, TransactionFactory

UTC = dt_timezone.utc
NOW = datetime(2024, 5, 15, 12, tzinfo=UTC)

pytestmark = pytest.mark.usefixtures("frozen_now")


@pytest.fixture
def frozen_now():
    with freeze_time(NOW):
        yield NOW


@pytest.fixture
def monthly_limit(account):
    return AccountLimitFactory(account=account, period=LimitPeriod.MONTH, limit=1000)


def record_expense(account, amount, date=NOW):
    return TransactionFactory(
        account=account, type=TransactionType.EXPENSE, amount=amount, date=date
    )


class TestValidate:
    """Tests for LimitValidationService.validate()."""

    def test_expense_over_limit_is_rejected(self, account, monthly_limit):
        """
        600 spent + 500 prospective > 1000 limit.

        Why it matters: This is the guard's reason to exist.
        """
        record_expense(account, 600)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=500, date=NOW
        )

        assert result.is_valid is False
        assert result.messages == [
            "Transaction would exceed monthly limit of 1000 "
            "(current spent: 600, remaining: 400)"
        ]

    def test_expense_reaching_limit_exactly_is_allowed(self, account, monthly_limit):
        record_expense(account, 600)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=400, date=NOW
        )

        assert result.is_valid is True

    def test_account_without_limits_is_always_valid(self, account):
        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=10**9, date=NOW
        )

        assert result.is_valid is True
        assert result.usages == []

    @pytest.mark.parametrize("txn_type", [TransactionType.INCOME, TransactionType.TRANSFER])
    def test_non_expenses_are_not_spend(self, account, monthly_limit, txn_type):
        record_expense(account, 1000)

        result = LimitValidationService.validate(account, type=txn_type, amount=5000, date=NOW)

        assert result.is_valid is True

    def test_income_in_window_does_not_count_as_spend(self, account, monthly_limit):
        TransactionFactory(account=account, type=TransactionType.INCOME, amount=900)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=1000, date=NOW
        )

        assert result.is_valid is True

    def test_spend_outside_window_is_ignored(self, account, monthly_limit):
        record_expense(account, 900, date=datetime(2024, 4, 30, 23, tzinfo=UTC))

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=1000, date=NOW
        )

        assert result.is_valid is True
        assert result.usages[0].current_spent == 0

    def test_prospect_dated_outside_window_does_not_count(self, account, monthly_limit):
        """
        A back-dated expense does not land in the current window.
        """
        record_expense(account, 900)

        result = LimitValidationService.validate(
            account,
            type=TransactionType.EXPENSE,
            amount=500,
            date=datetime(2024, 4, 10, tzinfo=UTC),
        )

        assert result.is_valid is True

    def test_edited_transaction_is_not_counted_twice(self, account, monthly_limit):
        existing = record_expense(account, 800)

        result = LimitValidationService.validate(
            account,
            type=TransactionType.EXPENSE,
            amount=900,
            date=NOW,
            exclude_transaction_id=existing.id,
        )

        assert result.is_valid is True
        assert result.usages[0].current_spent == 0

    def test_other_accounts_spend_is_ignored(self, account, second_account, monthly_limit):
        record_expense(second_account, 5000)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=1000, date=NOW
        )

        assert result.is_valid is True

    def test_every_exceeded_limit_is_reported(self, account):
        AccountLimitFactory(account=account, period=LimitPeriod.WEEK, limit=500)
        AccountLimitFactory(account=account, period=LimitPeriod.MONTH, limit=700)
        record_expense(account, 400)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=350, date=NOW
        )

        assert len(result.violations) == 2
        assert {v.limit.period for v in result.violations} == {"week", "month"}

    def test_only_exceeded_limits_are_violations(self, account):
        AccountLimitFactory(account=account, period=LimitPeriod.WEEK, limit=500)
        AccountLimitFactory(account=account, period=LimitPeriod.MONTH, limit=5000)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=600, date=NOW
        )

        assert len(result.usages) == 2
        assert [v.limit.period for v in result.violations] == ["week"]
        assert result.messages[0].startswith("Transaction would exceed weekly limit of 500")

    def test_weekly_window_starts_monday(self, account):
        AccountLimitFactory(account=account, period=LimitPeriod.WEEK, limit=500)
        # Sunday before the frozen Wednesday belongs to the previous week
        record_expense(account, 500, date=datetime(2024, 5, 12, 23, tzinfo=UTC))

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=500, date=NOW
        )

        assert result.is_valid is True

    def test_rolling_resolver_can_be_injected(self, account):
        AccountLimitFactory(account=account, period=LimitPeriod.WEEK, limit=500)
        record_expense(account, 500, date=datetime(2024, 5, 12, 23, tzinfo=UTC))

        result = LimitValidationService.validate(
            account,
            type=TransactionType.EXPENSE,
            amount=1,
            date=NOW,
            resolver=RollingPeriodResolver(tz=UTC),
        )

        assert result.is_valid is False

    def test_remaining_never_negative(self, account, monthly_limit):
        record_expense(account, 1500)

        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=1, date=NOW
        )

        assert result.violations[0].remaining_amount == 0


class TestRaiseIfInvalid:
    """Tests for LimitValidationResult.raise_if_invalid()."""

    def test_raises_with_structured_details(self, account, monthly_limit):
        record_expense(account, 600)
        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=500, date=NOW
        )

        with pytest.raises(LimitExceededError) as exc_info:
            result.raise_if_invalid()

        error = exc_info.value
        assert error.error_code == "ACCOUNT_LIMIT_EXCEEDED"
        assert len(error.violations) == 1
        limit_info = error.to_dict()["details"]["limits"][0]
        assert limit_info["period"] == "month"
        assert limit_info["limit"] == 1000
        assert limit_info["current_spent"] == 600
        assert limit_info["remaining_amount"] == 400

    def test_valid_result_does_not_raise(self, account, monthly_limit):
        result = LimitValidationService.validate(
            account, type=TransactionType.EXPENSE, amount=10, date=NOW
        )

        result.raise_if_invalid()


class TestUsageFor:
    """Tests for LimitValidationService.usage_for()."""

    def test_reports_spend_per_limit_without_prospect(self, account, monthly_limit):
        record_expense(account, 1200)

        usages = LimitValidationService.usage_for(account)

        assert len(usages) == 1
        assert usages[0].current_spent == 1200
        assert usages[0].remaining_amount == 0
        assert usages[0].exceeded is False
        assert usages[0].window.start == datetime(2024, 5, 1, tzinfo=UTC)
