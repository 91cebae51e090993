"""
Balance delta calculation.

Pure functions, no I/O. Every balance write in the ledger is computed here,
so the rule for each transaction type lives in exactly one place:

    income   -> +amount
    expense  -> -amount
    transfer ->  0        (recorded, never moves money between accounts)

Usage:
    from ledger.balances import effect_of, net_delta_for_update

    effect_of("expense", 100)                          # -100
    net_delta_for_update("expense", 100, "income", 100)  # 200
"""

from __future__ import annotations

from .models import TransactionType

_SIGN: dict[TransactionType, int] = {
    TransactionType.INCOME: 1,
    TransactionType.EXPENSE: -1,
    TransactionType.TRANSFER: 0,
}


def _sign(type: TransactionType | str) -> int:
    try:
        return _SIGN[TransactionType(type)]
    except ValueError:
        raise ValueError(f"Unknown transaction type: {type!r}") from None


def affects_balance(type: TransactionType | str) -> bool:
    """Whether transactions of this type change an account balance."""
    return _sign(type) != 0


def effect_of(type: TransactionType | str, amount: int) -> int:
    """
    Signed balance effect of one transaction.

    Args:
        type: Transaction type
        amount: Non-negative amount in minor units

    Returns:
        The amount to add to the account balance

    Raises:
        ValueError: If type is not a TransactionType value
    """
    return _sign(type) * amount


def net_delta_for_update(
    old_type: TransactionType | str,
    old_amount: int,
    new_type: TransactionType | str,
    new_amount: int,
) -> int:
    """
    Balance change when a transaction on the same account is edited.

    Reverses the old effect and applies the new one, so amount-only,
    type-only and combined edits are all handled. Flipping expense(100) to
    income(100) yields +200.
    """
    return effect_of(new_type, new_amount) - effect_of(old_type, old_amount)


def effect_of_deletion(type: TransactionType | str, amount: int) -> int:
    """Balance change that reverses a transaction."""
    return -effect_of(type, amount)
