"""
Ledger models for the personal-finance ledger.

This module defines the persisted state of the ledger:
- Account: Holds a running balance in minor currency units (cents)
- Category: Classifies transactions (expense, income, transfer)
- Transaction: A single balance-affecting (or transfer) record
- AccountLimit: A weekly or monthly spending cap on one account

The stored ``Account.balance`` always equals ``opening_balance`` plus the
signed effect of every transaction on the account. That is an application
level invariant: nothing in the schema enforces it, so every write that
touches a transaction or a balance goes through
``ledger.services.TransactionService``.

Usage:
    from ledger.models import Account, AccountType, Transaction, TransactionType

    accounts = Account.objects.for_group(user.group_id)
    expenses = Transaction.objects.for_group(user.group_id).filter(
        type=TransactionType.EXPENSE,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel


class AccountType(models.TextChoices):
    """
    Kinds of account.

    Values:
        EXPENSE: Spending account (wallet, card)
        INCOME: Account money is paid into (salary, savings)
    """

    EXPENSE = "expense", "Expense"
    INCOME = "income", "Income"


class CategoryType(models.TextChoices):
    """Kinds of category. Income/expense transactions need a matching category."""

    EXPENSE = "expense", "Expense"
    INCOME = "income", "Income"
    TRANSFER = "transfer", "Transfer"


class TransactionType(models.TextChoices):
    """
    Kinds of transaction.

    The balance effect of each kind is defined in ``ledger.balances``.

    Values:
        EXPENSE: Subtracts the amount from the account balance
        INCOME: Adds the amount to the account balance
        TRANSFER: Recorded only; never changes any balance
    """

    EXPENSE = "expense", "Expense"
    INCOME = "income", "Income"
    TRANSFER = "transfer", "Transfer"


class LimitPeriod(models.TextChoices):
    """Window a spending limit is measured over."""

    WEEK = "week", "Weekly"
    MONTH = "month", "Monthly"


class GroupScopedQuerySet(models.QuerySet):
    """QuerySet for rows owned by a ledger group."""

    def for_group(self, group_id):
        """
        Restrict to rows of one group.

        A ``None`` group yields an empty queryset, so users without a group
        see nothing rather than everything.
        """
        if group_id is None:
            return self.none()
        return self.filter(group_id=group_id)


class Account(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    An account holding a running balance.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        group: Owning ledger group
        name: Display name
        type: expense or income
        balance: Current balance in minor units (may be negative)
        opening_balance: Balance the account was created with
        note: Optional free text
        metadata: Arbitrary JSON data (from MetadataMixin)

    Note:
        ``balance`` is written only by the ledger services, always with an
        ``F()`` expression while the row is locked.
    """

    group = models.ForeignKey(
        "authentication.Group",
        on_delete=models.CASCADE,
        related_name="accounts",
        help_text="Ledger group that owns this account",
    )
    name = models.CharField(
        max_length=100,
        help_text="Display name of the account",
    )
    type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        default=AccountType.EXPENSE,
        help_text="Kind of account",
    )
    balance = models.BigIntegerField(
        default=0,
        help_text="Current balance in minor currency units (cents)",
    )
    opening_balance = models.BigIntegerField(
        default=0,
        help_text="Balance the account was created with, in minor units",
    )
    note = models.TextField(
        blank=True,
        default="",
        help_text="Optional note about this account",
    )

    objects = GroupScopedQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["group", "type"], name="ledger_account_group_type_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_type_display()})"


class Category(UUIDPrimaryKeyMixin, BaseModel):
    """
    A transaction category.

    Fields:
        group: Owning ledger group
        name: Display name
        type: expense, income or transfer
        note: Optional free text
    """

    group = models.ForeignKey(
        "authentication.Group",
        on_delete=models.CASCADE,
        related_name="categories",
        help_text="Ledger group that owns this category",
    )
    name = models.CharField(
        max_length=100,
        help_text="Display name of the category",
    )
    type = models.CharField(
        max_length=20,
        choices=CategoryType.choices,
        help_text="Kind of transactions this category classifies",
    )
    note = models.TextField(
        blank=True,
        default="",
        help_text="Optional note about this category",
    )

    objects = GroupScopedQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return f"{self.name} ({self.get_type_display()})"


class Transaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    A single ledger transaction.

    Once persisted, ``(account, amount, type)`` is exactly what has been
    applied to the account balance. Rows are created, edited and deleted
    only through ``TransactionService``.

    Fields:
        group: Owning ledger group
        account: Account whose balance this transaction affects
        category: Classification (type must match for income/expense)
        created_by: User who recorded the transaction
        amount: Non-negative amount in minor units
        type: expense, income or transfer
        date: When the transaction happened (drives limit windows)
        note: Optional free text
        is_highlighted: User-set flag for emphasis in listings
        recurrence_id: Recurring template that produced this row, if any

    Constraints:
        - amount must be zero or greater
    """

    group = models.ForeignKey(
        "authentication.Group",
        on_delete=models.CASCADE,
        related_name="transactions",
        help_text="Ledger group that owns this transaction",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Account whose balance this transaction affects",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Category of this transaction",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_transactions",
        help_text="User who recorded this transaction",
    )
    amount = models.BigIntegerField(
        help_text="Amount in minor currency units (never negative)",
    )
    type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        help_text="Kind of transaction",
    )
    date = models.DateTimeField(
        default=timezone.now,
        help_text="When the transaction happened",
    )
    note = models.TextField(
        blank=True,
        default="",
        help_text="Optional note about this transaction",
    )
    is_highlighted = models.BooleanField(
        default=False,
        help_text="Whether the user flagged this transaction",
    )
    recurrence_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Recurring template that produced this transaction",
    )

    objects = GroupScopedQuerySet.as_manager()

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["account", "date"], name="ledger_txn_account_date_idx"),
            models.Index(fields=["date"], name="ledger_txn_date_idx"),
            models.Index(
                fields=["account", "type", "date"], name="ledger_txn_acct_type_date_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="ledger_transaction_amount_non_negative",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount}"


class AccountLimit(UUIDPrimaryKeyMixin, BaseModel):
    """
    A spending cap on one account over a week or a month.

    Read-only input to ``LimitValidationService``; transaction flows never
    modify it.

    Fields:
        account: Account the limit applies to
        period: week or month
        limit: Maximum expense total allowed within one period window
    """

    account = models.ForeignKey(
        Account,
        on_delete=models.CASCADE,
        related_name="limits",
        help_text="Account this limit applies to",
    )
    period = models.CharField(
        max_length=10,
        choices=LimitPeriod.choices,
        help_text="Window the limit is measured over",
    )
    limit = models.BigIntegerField(
        help_text="Maximum expense total per window, in minor units",
    )

    class Meta:
        ordering = ["period", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(limit__gte=0),
                name="ledger_account_limit_non_negative",
            )
        ]

    def __str__(self) -> str:
        return f"{self.period_label} limit of {self.limit}"

    @property
    def period_label(self) -> str:
        """Adjective naming the period: "weekly" or "monthly"."""
        return self.get_period_display().lower()
