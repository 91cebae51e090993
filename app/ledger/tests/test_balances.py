"""
Tests for balance delta calculation.

These are pure functions; no database access.
"""

import pytest

from ledger.balances import (
    affects_balance,
    effect_of,
    effect_of_deletion,
    net_delta_for_update,
)
from ledger.models import TransactionType


class TestEffectOf:
    """Tests for effect_of()."""

    def test_income_adds_amount(self):
        assert effect_of(TransactionType.INCOME, 25000) == 25000

    def test_expense_subtracts_amount(self):
        assert effect_of(TransactionType.EXPENSE, 25000) == -25000

    def test_transfer_has_no_effect(self):
        """
        Transfers are recorded but never move a balance.

        Why it matters: A transfer has a single account reference, so
        applying it would create or destroy money.
        """
        assert effect_of(TransactionType.TRANSFER, 25000) == 0

    def test_accepts_plain_string_types(self):
        assert effect_of("expense", 100) == -100

    def test_zero_amount_has_no_effect(self):
        assert effect_of(TransactionType.EXPENSE, 0) == 0

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown transaction type"):
            effect_of("refund", 100)


class TestAffectsBalance:
    """Tests for affects_balance()."""

    @pytest.mark.parametrize(
        "txn_type, expected",
        [
            (TransactionType.INCOME, True),
            (TransactionType.EXPENSE, True),
            (TransactionType.TRANSFER, False),
        ],
    )
    def test_by_type(self, txn_type, expected):
        assert affects_balance(txn_type) is expected


class TestNetDeltaForUpdate:
    """Tests for net_delta_for_update()."""

    def test_income_amount_increase(self):
        """
        Income edited from 25000 to 15000 lowers the balance by 10000.
        """
        assert net_delta_for_update("income", 25000, "income", 15000) == -10000

    def test_expense_amount_increase(self):
        assert net_delta_for_update("expense", 100, "expense", 300) == -200

    def test_expense_flipped_to_income_swings_twice_the_amount(self):
        """
        expense(100) -> income(100) is +200: the expense is reversed and the
        income applied.
        """
        assert net_delta_for_update("expense", 100, "income", 100) == 200

    def test_income_flipped_to_expense(self):
        assert net_delta_for_update("income", 100, "expense", 50) == -150

    def test_expense_to_transfer_only_reverses(self):
        assert net_delta_for_update("expense", 100, "transfer", 100) == 100

    def test_transfer_to_income_only_applies(self):
        assert net_delta_for_update("transfer", 100, "income", 100) == 100

    def test_unchanged_transaction_is_zero(self):
        assert net_delta_for_update("expense", 700, "expense", 700) == 0


class TestEffectOfDeletion:
    """Tests for effect_of_deletion()."""

    def test_deleting_income_subtracts(self):
        assert effect_of_deletion("income", 15000) == -15000

    def test_deleting_expense_adds_back(self):
        assert effect_of_deletion("expense", 500) == 500

    def test_deleting_transfer_is_zero(self):
        assert effect_of_deletion("transfer", 500) == 0

    def test_create_then_delete_nets_to_zero(self):
        for txn_type in TransactionType.values:
            assert effect_of(txn_type, 1234) + effect_of_deletion(txn_type, 1234) == 0
