"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource missing or outside the caller's group
    └── ConflictError - State conflicts (lock failures, concurrent deletes)

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError(
        "Validation failed",
        error_code="VALIDATION_ERROR",
        details={"amount": ["This field is required."]},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions carry domain errors raised by the service layer.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Account not found",
                "error_code": "ACCOUNT_NOT_FOUND",
                "details": {"account_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )

class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Field-level problems go in ``details`` keyed by field name:

        raise ValidationError(
            "Validation failed",
            details={"amount": ["Must be zero or greater."]},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"

class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Rows owned by another group are reported the same way as rows that do
    not exist, so the caller cannot probe for their existence.
    """

    default_error_code: str = "NOT_FOUND"

class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for lock acquisition failures and rows that vanished under a
    concurrent writer. HTTP 409 Conflict is the matching status.
    """

    default_error_code: str = "CONFLICT"
