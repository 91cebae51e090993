"""
Base service layer patterns for business logic encapsulation.

- ServiceResult: result wrapper for expected failures (bad input, rule violations)
- BaseService: per-service logger and transaction boundary helper

Views handle HTTP concerns, models handle data, services handle logic.
Services that must abort a unit of work raise from core.exceptions instead
of returning a failed ServiceResult, so the enclosing atomic block rolls back.

Usage:
    from core.services import BaseService, ServiceResult

    class AccountService(BaseService):
        @classmethod
        def create_account(cls, actor, name: str) -> ServiceResult[Account]:
            if not name.strip():
                return ServiceResult.failure("Name is required", "VALIDATION_ERROR")

            with cls.atomic():
                account = Account.objects.create(group=actor.group, name=name)

            cls.get_logger().info(f"Created account {account.id}")
            return ServiceResult.success(account)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """Convert a failed result to the API error body."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Raise exceptions when a unit of work has to roll back
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the service class, for easy filtering."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around ``transaction.atomic()`` that makes the unit of
        work explicit in service code. Any exception raised inside the block
        rolls back every write made in it. Nested use creates a savepoint.
        """
        with transaction.atomic():
            yield
