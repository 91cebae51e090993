"""
End-to-end ledger workflows.

These tests walk through complete sequences of mutations and check the
stored balance after each step, then confirm that reconciliation agrees.
The concurrency tests run worker threads with their own connections; on
PostgreSQL they contend on the account row lock, on SQLite on the database
write lock taken by BEGIN IMMEDIATE.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import connection

from ledger.exceptions import LimitExceededError
from ledger.models import Account, LimitPeriod, Transaction, TransactionType
from ledger.reconciliation import ReconciliationService
from ledger.services import TransactionService
from ledger.tests.factories import AccountLimitFactory
from ledger.types import CreateTransactionParams, UpdateTransactionParams


def balance_of(account):
    return Account.objects.values_list("balance", flat=True).get(pk=account.pk)


def params(account, category, amount, type):
    return CreateTransactionParams(
        account_id=account.id, category_id=category.id, amount=amount, type=type
    )


# =============================================================================
# Sequential Workflows
# =============================================================================


class TestBalanceLifecycle:
    """Create, edit and delete against one account."""

    def test_income_create_edit_delete(self, member, account, income_category):
        """
        100000 -> +25000 -> edit to 15000 -> delete.

        Why it matters: Every step must leave balance = opening + effects.
        """
        txn = TransactionService.create_transaction(
            member, params(account, income_category, 25000, TransactionType.INCOME)
        )
        assert balance_of(account) == 125000

        TransactionService.update_transaction(
            member, txn.id, UpdateTransactionParams(amount=15000)
        )
        assert balance_of(account) == 115000

        TransactionService.delete_transaction(member, txn.id)
        assert balance_of(account) == 100000
        assert ReconciliationService.find_drift() == []

    def test_many_mixed_mutations_reconcile(
        self, member, account, second_account, income_category, expense_category,
        transfer_category,
    ):
        created = [
            TransactionService.create_transaction(
                member, params(account, income_category, 5000, TransactionType.INCOME)
            ),
            TransactionService.create_transaction(
                member, params(account, expense_category, 1250, TransactionType.EXPENSE)
            ),
            TransactionService.create_transaction(
                member, params(account, transfer_category, 9999, TransactionType.TRANSFER)
            ),
            TransactionService.create_transaction(
                member, params(second_account, expense_category, 300, TransactionType.EXPENSE)
            ),
        ]
        TransactionService.update_transaction(
            member, created[1].id, UpdateTransactionParams(account_id=second_account.id)
        )
        TransactionService.update_transaction(
            member,
            created[0].id,
            UpdateTransactionParams(
                type=TransactionType.EXPENSE, category_id=expense_category.id
            ),
        )
        TransactionService.delete_transaction(member, created[3].id)

        assert balance_of(account) == 100000 - 5000
        assert balance_of(second_account) == 50000 - 1250
        assert ReconciliationService.find_drift() == []

    def test_transfer_is_balance_neutral(self, member, account, transfer_category):
        """
        Transfers only record a movement; the counterpart account is not
        modelled, so no balance changes on create, edit or delete.
        """
        txn = TransactionService.create_transaction(
            member, params(account, transfer_category, 40000, TransactionType.TRANSFER)
        )
        TransactionService.update_transaction(
            member, txn.id, UpdateTransactionParams(amount=1)
        )
        TransactionService.delete_transaction(member, txn.id)

        assert balance_of(account) == 100000


class TestLimitWorkflow:
    """Limits across a series of expenses."""

    def test_rejected_expense_can_be_retried_smaller(
        self, member, account, expense_category
    ):
        AccountLimitFactory(account=account, period=LimitPeriod.MONTH, limit=1000)
        TransactionService.create_transaction(
            member, params(account, expense_category, 600, TransactionType.EXPENSE)
        )

        with pytest.raises(LimitExceededError):
            TransactionService.create_transaction(
                member, params(account, expense_category, 500, TransactionType.EXPENSE)
            )
        TransactionService.create_transaction(
            member, params(account, expense_category, 400, TransactionType.EXPENSE)
        )

        assert balance_of(account) == 100000 - 1000
        assert Transaction.objects.count() == 2

    def test_deleting_expense_frees_headroom(self, member, account, expense_category):
        AccountLimitFactory(account=account, period=LimitPeriod.WEEK, limit=1000)
        first = TransactionService.create_transaction(
            member, params(account, expense_category, 1000, TransactionType.EXPENSE)
        )

        TransactionService.delete_transaction(member, first.id)
        TransactionService.create_transaction(
            member, params(account, expense_category, 1000, TransactionType.EXPENSE)
        )

        assert balance_of(account) == 100000 - 1000


# =============================================================================
# Concurrency
# =============================================================================


@pytest.mark.django_db(transaction=True)
class TestConcurrentMutations:
    """
    Concurrent mutations of one account serialize on its row lock.

    Each worker thread opens its own database connection.
    """

    def run_concurrently(self, func, count):
        def worker():
            try:
                return func()
            finally:
                connection.close()

        outcomes = []
        with ThreadPoolExecutor(max_workers=count) as executor:
            futures = [executor.submit(worker) for _ in range(count)]
            for future in as_completed(futures):
                try:
                    outcomes.append(future.result())
                except LimitExceededError as exc:
                    outcomes.append(exc)
        return outcomes

    def test_no_lost_updates(self, member, account, expense_category):
        self.run_concurrently(
            lambda: TransactionService.create_transaction(
                member, params(account, expense_category, 100, TransactionType.EXPENSE)
            ),
            count=10,
        )

        assert balance_of(account) == 100000 - 1000
        assert Transaction.objects.count() == 10

    def test_limit_holds_under_concurrency(self, member, account, expense_category):
        """
        Ten concurrent 100-unit expenses against a 500 limit: exactly five win.
        """
        AccountLimitFactory(account=account, period=LimitPeriod.MONTH, limit=500)

        outcomes = self.run_concurrently(
            lambda: TransactionService.create_transaction(
                member, params(account, expense_category, 100, TransactionType.EXPENSE)
            ),
            count=10,
        )

        rejected = [o for o in outcomes if isinstance(o, LimitExceededError)]
        assert len(rejected) == 5
        assert Transaction.objects.count() == 5
        assert balance_of(account) == 100000 - 500
