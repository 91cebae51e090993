"""
Tests for account row locking helpers.

SQLite ignores SELECT ... FOR UPDATE, so these tests cover the contract
(atomic block required, group scoping, lookup errors, ordering). Actual
blocking between connections is exercised in test_integration.py.
"""

import uuid

import pytest
from django.db import transaction
from django.db.transaction import TransactionManagementError

from ledger.exceptions import AccountNotFound
from ledger.locks import lock_account, lock_accounts
from ledger.models import Account
from ledger.tests.factories import AccountFactory


class TestLockAccount:
    """Tests for lock_account()."""

    def test_returns_fresh_balance(self, account):
        Account.objects.filter(pk=account.pk).update(balance=4242)

        with transaction.atomic():
            locked = lock_account(account.id)

        assert locked.pk == account.pk
        assert locked.balance == 4242

    def test_scoped_to_group(self, account, outsider):
        with transaction.atomic(), pytest.raises(AccountNotFound):
            lock_account(account.id, group_id=outsider.group_id)

    def test_missing_account_raises(self, db):
        missing = uuid.uuid4()

        with transaction.atomic(), pytest.raises(AccountNotFound) as exc_info:
            lock_account(missing)

        assert exc_info.value.details == {"account_id": str(missing)}

    @pytest.mark.django_db(transaction=True)
    def test_requires_atomic_block(self):
        account = AccountFactory()

        with pytest.raises(TransactionManagementError):
            lock_account(account.id)


class TestLockAccounts:
    """Tests for lock_accounts()."""

    def test_locks_every_requested_account(self, account, second_account):
        with transaction.atomic():
            locked = lock_accounts([second_account.id, account.id])

        assert set(locked) == {account.id, second_account.id}

    def test_accepts_string_ids(self, account):
        with transaction.atomic():
            locked = lock_accounts([str(account.id)])

        assert locked[account.id].name == account.name

    def test_duplicate_ids_lock_once(self, account):
        with transaction.atomic():
            locked = lock_accounts([account.id, account.id])

        assert list(locked) == [account.id]

    def test_any_missing_account_raises(self, account):
        with transaction.atomic(), pytest.raises(AccountNotFound):
            lock_accounts([account.id, uuid.uuid4()])

    @pytest.mark.django_db(transaction=True)
    def test_requires_atomic_block(self):
        with pytest.raises(TransactionManagementError):
            lock_accounts([uuid.uuid4()])
