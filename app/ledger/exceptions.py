"""
Ledger-specific exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── TransactionValidationError - Bad payload, rejected before any write
    ├── AccountNotFound - Account missing or owned by another group
    ├── CategoryNotFound - Category missing or owned by another group
    ├── TransactionNotFound - Transaction missing or owned by another group
    ├── LimitExceededError - One or more spending limits would be breached
    └── ConsistencyFault - Unit of work aborted by a lock race; retryable

Every error is raised from inside the unit of work, so the enclosing
``transaction.atomic()`` block rolls back and neither the transaction row
nor the balance change persists.

Usage:
    from ledger.exceptions import LimitExceededError

    try:
        TransactionService.create_transaction(user, params)
    except LimitExceededError as e:
        return Response(e.to_dict(), status=422)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any

    from .limits import LimitUsage


class LedgerError(BaseApplicationError):
    """Base exception for all ledger operations."""

    default_error_code: str = "LEDGER_ERROR"


class TransactionValidationError(LedgerError, ValidationError):
    """
    Raised when a transaction payload is invalid.

    ``details`` maps field names to lists of messages:

        raise TransactionValidationError(
            "Invalid transaction",
            details={"amount": ["This field is required."]},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class AccountNotFound(LedgerError, NotFoundError):
    """
    Raised when an account cannot be found in the caller's group.

    Example:
        raise AccountNotFound(
            f"Account {account_id} not found",
            details={"account_id": str(account_id)},
        )
    """

    default_error_code: str = "ACCOUNT_NOT_FOUND"


class CategoryNotFound(LedgerError, NotFoundError):
    """Raised when a category cannot be found in the caller's group."""

    default_error_code: str = "CATEGORY_NOT_FOUND"


class TransactionNotFound(LedgerError, NotFoundError):
    """Raised when a transaction cannot be found in the caller's group."""

    default_error_code: str = "TRANSACTION_NOT_FOUND"


class LimitExceededError(LedgerError):
    """
    Raised when a mutation would push spending past one or more limits.

    Carries one entry per exceeded limit, each with the period, the limit
    amount, the spend already recorded in the window and the remaining
    headroom.

    Attributes:
        violations: The exceeded limits, in evaluation order
        messages: One human-readable message per violation
    """

    default_error_code: str = "ACCOUNT_LIMIT_EXCEEDED"

    def __init__(
        self,
        violations: list[LimitUsage],
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.violations = list(violations)
        self.messages = [violation.message for violation in self.violations]

        full_details: dict[str, Any] = {
            "messages": self.messages,
            "limits": [violation.to_dict() for violation in self.violations],
        }
        if details:
            full_details.update(details)

        super().__init__(
            message="; ".join(self.messages) or "Account limit exceeded",
            error_code=error_code,
            details=full_details,
        )


class ConsistencyFault(LedgerError, ConflictError):
    """
    Raised when the unit of work cannot complete safely.

    Covers an account row vanishing between lookup and lock, a concurrent
    delete racing an update, and database lock failures (deadlock, lock
    timeout). Nothing has been applied when this is raised; callers may
    retry the whole operation.
    """

    default_error_code: str = "LEDGER_CONSISTENCY_FAULT"
    retryable: bool = True
