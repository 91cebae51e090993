"""
Spending limit validation.

Before a create or a balance-affecting update is written, the guard checks
the prospective transaction against every AccountLimit of its account:

    projected = spend already recorded in the window + prospective amount
    exceeded  = projected > limit.limit

Only expense transactions count as spend, and the prospective amount only
counts when it is an expense dated inside the window. When an existing
transaction is edited, its stored row is left out of the recorded spend so
it is not counted twice.

The check is read-only. The engine runs it inside the unit of work, after
locking the account and before any write, so a rejection leaves no trace.

Usage:
    from ledger.limits import LimitValidationService

    result = LimitValidationService.validate(
        account, type="expense", amount=500, date=timezone.now()
    )
    result.raise_if_invalid()  # LimitExceededError with one entry per limit
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.db import models
from django.db.models import Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.services import BaseService

from .exceptions import LimitExceededError
from .models import AccountLimit, Transaction, TransactionType
from .periods import PeriodWindow, get_period_resolver

if TYPE_CHECKING:
    from .models import Account
    from .periods import PeriodResolver


@dataclass
class LimitUsage:
    """
    How much of one limit a prospective transaction would use.

    Attributes:
        limit: The AccountLimit evaluated
        window: Period window the limit resolved to
        current_spent: Expense total already recorded in the window
        projected_spent: current_spent plus the prospective expense
        counts_prospect: Whether the prospective transaction counts as spend
            in this window
    """

    limit: AccountLimit
    window: PeriodWindow
    current_spent: int
    projected_spent: int
    counts_prospect: bool = False

    @property
    def remaining_amount(self) -> int:
        """Headroom left before the prospective transaction, never negative."""
        return max(self.limit.limit - self.current_spent, 0)

    @property
    def exceeded(self) -> bool:
        return self.counts_prospect and self.projected_spent > self.limit.limit

    @property
    def message(self) -> str:
        return (
            f"Transaction would exceed {self.limit.period_label} limit of "
            f"{self.limit.limit} (current spent: {self.current_spent}, "
            f"remaining: {self.remaining_amount})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "limit_id": str(self.limit.id),
            "period": self.limit.period,
            "limit": self.limit.limit,
            "current_spent": self.current_spent,
            "remaining_amount": self.remaining_amount,
            "window_start": self.window.start.isoformat(),
            "window_end": self.window.end.isoformat(),
        }


@dataclass
class LimitValidationResult:
    """Outcome of checking a prospective transaction against all limits."""

    usages: list[LimitUsage] = field(default_factory=list)

    @property
    def violations(self) -> list[LimitUsage]:
        return [usage for usage in self.usages if usage.exceeded]

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [usage.message for usage in self.violations]

    def raise_if_invalid(self) -> None:
        """
        Raises:
            LimitExceededError: If any limit would be exceeded
        """
        if not self.is_valid:
            raise LimitExceededError(self.violations)


class LimitValidationService(BaseService):
    """
    Read-only guard evaluating AccountLimits.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def validate(
        cls,
        account: Account,
        *,
        type: TransactionType | str,
        amount: int,
        date: datetime,
        exclude_transaction_id: uuid.UUID | None = None,
        at: datetime | None = None,
        resolver: PeriodResolver | None = None,
    ) -> LimitValidationResult:
        """
        Evaluate a prospective transaction against the account's limits.

        Args:
            account: Account the transaction would be recorded on
            type: Prospective transaction type
            amount: Prospective amount in minor units
            date: Prospective transaction date
            exclude_transaction_id: Transaction being edited, left out of
                the recorded spend
            at: Moment the period windows are resolved for (default: now)
            resolver: Period resolver (default: LEDGER_PERIOD_RESOLVER)

        Returns:
            LimitValidationResult with one usage entry per limit
        """
        resolver = resolver or get_period_resolver()
        at = at or timezone.now()
        is_expense = TransactionType(type) == TransactionType.EXPENSE

        usages: list[LimitUsage] = []
        for limit in AccountLimit.objects.filter(account_id=account.pk):
            window = resolver.resolve(limit.period, at)
            spent = cls.spent_in_window(
                account.pk, window, exclude_transaction_id=exclude_transaction_id
            )
            counts_prospect = is_expense and window.contains(date)
            usages.append(
                LimitUsage(
                    limit=limit,
                    window=window,
                    current_spent=spent,
                    projected_spent=spent + amount if counts_prospect else spent,
                    counts_prospect=counts_prospect,
                )
            )

        result = LimitValidationResult(usages=usages)
        if not result.is_valid:
            cls.get_logger().warning(
                "Account limit would be exceeded",
                extra={
                    "account_id": str(account.pk),
                    "amount": amount,
                    "violations": [usage.to_dict() for usage in result.violations],
                },
            )
        return result

    @staticmethod
    def spent_in_window(
        account_id: uuid.UUID,
        window: PeriodWindow,
        *,
        exclude_transaction_id: uuid.UUID | None = None,
    ) -> int:
        """Sum of expense amounts on the account dated inside the window."""
        queryset = Transaction.objects.filter(
            account_id=account_id,
            type=TransactionType.EXPENSE,
            date__gte=window.start,
            date__lt=window.end,
        )
        if exclude_transaction_id is not None:
            queryset = queryset.exclude(id=exclude_transaction_id)

        return queryset.aggregate(
            total=Coalesce(
                Sum("amount"),
                Value(0),
                output_field=models.BigIntegerField(),
            )
        )["total"]

    @classmethod
    def usage_for(
        cls,
        account: Account,
        *,
        at: datetime | None = None,
        resolver: PeriodResolver | None = None,
    ) -> list[LimitUsage]:
        """Current usage of every limit on the account, without a prospect."""
        return cls.validate(
            account,
            type=TransactionType.TRANSFER,
            amount=0,
            date=at or timezone.now(),
            at=at,
            resolver=resolver,
        ).usages
