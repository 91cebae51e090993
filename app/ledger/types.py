"""
Data types for ledger operations.

Types:
    CreateTransactionParams: Payload for recording a new transaction
    UpdateTransactionParams: Partial patch for an existing transaction
    TransactionPatch: One entry of a bulk update

Validation of these payloads happens in ``TransactionService`` so that all
field errors are reported together as one TransactionValidationError.

Usage:
    from ledger.types import CreateTransactionParams, UpdateTransactionParams

    params = CreateTransactionParams(
        account_id=account.id,
        category_id=groceries.id,
        amount=2599,
        type="expense",
    )

    patch = UpdateTransactionParams(amount=1999)

    # Detach from its recurring template
    patch = UpdateTransactionParams(recurrence_id=None)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any


class _Unset:
    """Marker for a patch field the caller did not send."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Largest batch TransactionService.bulk_update() accepts
MAX_BULK_UPDATE = 500

UNSET: Any = _Unset()


@dataclass
class CreateTransactionParams:
    """
    Parameters for recording a transaction.

    Required Attributes:
        account_id: UUID of the account the transaction is recorded on
        category_id: UUID of the transaction's category
        amount: Amount in minor units (zero or greater)
        type: "expense", "income" or "transfer"

    Optional Attributes:
        date: When the transaction happened (default: now)
        note: Free text
        is_highlighted: User-set emphasis flag
        recurrence_id: Recurring template that produced the transaction
    """

    account_id: uuid.UUID | None
    category_id: uuid.UUID | None
    amount: int | None
    type: str | None

    date: datetime | None = None
    note: str = ""
    is_highlighted: bool = False
    recurrence_id: uuid.UUID | None = None


@dataclass
class UpdateTransactionParams:
    """
    Partial update for a transaction.

    Attributes left at None keep their current value. ``recurrence_id`` is
    nullable on the model, so it defaults to UNSET instead and an explicit
    None detaches the transaction from its recurring template.
    """

    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    amount: int | None = None
    type: str | None = None
    date: datetime | None = None
    note: str | None = None
    is_highlighted: bool | None = None
    recurrence_id: uuid.UUID | None = UNSET

    def changes(self) -> dict[str, Any]:
        """Fields the patch sets, keyed by attribute name."""
        changed = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            if value is None and f.name != "recurrence_id":
                continue
            changed[f.name] = value
        return changed


@dataclass
class TransactionPatch:
    """One transaction edit inside TransactionService.bulk_update()."""

    transaction_id: uuid.UUID
    patch: UpdateTransactionParams
