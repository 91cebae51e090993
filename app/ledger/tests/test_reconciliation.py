"""
Tests for balance reconciliation.

Drift is produced by writing rows with factories, which bypass the
service layer and never touch balances.
"""

import uuid

import pytest

from ledger.exceptions import AccountNotFound
from ledger.models import Account, TransactionType
from ledger.reconciliation import BalanceDrift, ReconciliationService
from ledger.services import TransactionService
from ledger.tests.factories import AccountFactory, TransactionFactory
from ledger.types import CreateTransactionParams


class TestExpectedBalance:
    """Tests for ReconciliationService.expected_balance()."""

    def test_opening_balance_without_transactions(self, account):
        assert ReconciliationService.expected_balance(account) == 100000

    def test_sums_signed_effects(self, account):
        TransactionFactory(account=account, type=TransactionType.INCOME, amount=25000)
        TransactionFactory(account=account, type=TransactionType.EXPENSE, amount=5000)
        TransactionFactory(account=account, type=TransactionType.TRANSFER, amount=99999)

        assert ReconciliationService.expected_balance(account) == 100000 + 25000 - 5000


class TestFindDrift:
    """Tests for ReconciliationService.find_drift()."""

    def test_service_written_ledger_has_no_drift(
        self, member, account, income_category, expense_category
    ):
        for category, amount, txn_type in [
            (income_category, 25000, TransactionType.INCOME),
            (expense_category, 1200, TransactionType.EXPENSE),
        ]:
            TransactionService.create_transaction(
                member,
                CreateTransactionParams(
                    account_id=account.id,
                    category_id=category.id,
                    amount=amount,
                    type=txn_type,
                ),
            )

        assert ReconciliationService.find_drift() == []

    def test_reports_bypassed_write(self, account):
        TransactionFactory(account=account, type=TransactionType.EXPENSE, amount=700)

        drifts = ReconciliationService.find_drift()

        assert drifts == [
            BalanceDrift(account_id=account.id, stored=100000, expected=99300)
        ]
        assert drifts[0].difference == 700

    def test_limits_check_to_given_accounts(self, account):
        other = AccountFactory()
        TransactionFactory(account=other, type=TransactionType.INCOME, amount=1)

        assert ReconciliationService.find_drift([account]) == []


class TestRepair:
    """Tests for ReconciliationService.repair()."""

    def test_rewrites_drifted_balance(self, account):
        TransactionFactory(account=account, type=TransactionType.INCOME, amount=300)

        drift = ReconciliationService.repair(account.id)

        assert drift.expected == 100300
        assert Account.objects.get(pk=account.pk).balance == 100300
        assert ReconciliationService.find_drift() == []

    def test_correct_balance_is_left_alone(self, account):
        assert ReconciliationService.repair(account.id) is None

    def test_unknown_account(self, db):
        with pytest.raises(AccountNotFound):
            ReconciliationService.repair(uuid.uuid4())
