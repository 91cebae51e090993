"""
Balance reconciliation.

Recomputes each account's balance from its transaction history and compares
it with the stored value:

    expected = opening_balance + sum(effect_of(t.type, t.amount) for t in transactions)

A mismatch ("drift") means some write bypassed TransactionService. Drift is
reported; repairing it is an explicit step that rewrites the stored balance
under the account row lock.

Usage:
    from ledger.reconciliation import ReconciliationService

    for drift in ReconciliationService.find_drift():
        ReconciliationService.repair(drift.account_id)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import models
from django.db.models import Case, F, Sum, Value, When
from django.db.models.functions import Coalesce

from core.services import BaseService

from .locks import lock_account
from .models import Account, Transaction, TransactionType

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class BalanceDrift:
    """A stored balance that disagrees with its transaction history."""

    account_id: uuid.UUID
    stored: int
    expected: int

    @property
    def difference(self) -> int:
        return self.stored - self.expected


def _signed_amount() -> Case:
    return Case(
        When(type=TransactionType.INCOME, then=F("amount")),
        When(type=TransactionType.EXPENSE, then=-F("amount")),
        default=Value(0),
        output_field=models.BigIntegerField(),
    )


class ReconciliationService(BaseService):
    """Checks and repairs the stored balance invariant."""

    @staticmethod
    def net_effect(account_id: uuid.UUID) -> int:
        """Sum of signed transaction effects on one account."""
        return Transaction.objects.filter(account_id=account_id).aggregate(
            total=Coalesce(
                Sum(_signed_amount()),
                Value(0),
                output_field=models.BigIntegerField(),
            )
        )["total"]

    @classmethod
    def expected_balance(cls, account: Account) -> int:
        return account.opening_balance + cls.net_effect(account.pk)

    @classmethod
    def find_drift(cls, accounts: Iterable[Account] | None = None) -> list[BalanceDrift]:
        """
        Compare stored and expected balances.

        Args:
            accounts: Accounts to check (default: every account)

        Returns:
            One BalanceDrift per account whose balance is off
        """
        if accounts is None:
            accounts = Account.objects.order_by("id").iterator()

        drifts = []
        for account in accounts:
            expected = cls.expected_balance(account)
            if account.balance != expected:
                drifts.append(
                    BalanceDrift(
                        account_id=account.pk,
                        stored=account.balance,
                        expected=expected,
                    )
                )

        if drifts:
            cls.get_logger().warning(
                "Account balance drift detected",
                extra={
                    "drifted_accounts": [str(drift.account_id) for drift in drifts],
                },
            )
        return drifts

    @classmethod
    def repair(cls, account_id: uuid.UUID) -> BalanceDrift | None:
        """
        Rewrite one account's balance to match its history.

        Runs under the account lock, so no ledger mutation can interleave.

        Returns:
            The drift that was fixed, or None if the balance was correct

        Raises:
            AccountNotFound: If the account does not exist
        """
        with cls.atomic():
            account = lock_account(account_id)
            expected = cls.expected_balance(account)
            if account.balance == expected:
                return None

            drift = BalanceDrift(
                account_id=account.pk, stored=account.balance, expected=expected
            )
            Account.objects.filter(pk=account.pk).update(balance=expected)

        cls.get_logger().warning(
            "Account balance repaired",
            extra={
                "account_id": str(drift.account_id),
                "stored": drift.stored,
                "expected": drift.expected,
            },
        )
        return drift
