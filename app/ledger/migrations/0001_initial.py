# Generated manually - Initial ledger schema

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                help_text="Unique identifier for this record",
                primary_key=True,
                serialize=False,
            ),
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=_timestamps()
            + [
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Flexible key-value metadata storage",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Display name of the account", max_length=100
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[("expense", "Expense"), ("income", "Income")],
                        default="expense",
                        help_text="Kind of account",
                        max_length=20,
                    ),
                ),
                (
                    "balance",
                    models.BigIntegerField(
                        default=0,
                        help_text="Current balance in minor currency units (cents)",
                    ),
                ),
                (
                    "opening_balance",
                    models.BigIntegerField(
                        default=0,
                        help_text="Balance the account was created with, in minor units",
                    ),
                ),
                (
                    "note",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Optional note about this account",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Ledger group that owns this account",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="accounts",
                        to="authentication.group",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["group", "type"], name="ledger_account_group_type_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Category",
            fields=_timestamps()
            + [
                (
                    "name",
                    models.CharField(
                        help_text="Display name of the category", max_length=100
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("expense", "Expense"),
                            ("income", "Income"),
                            ("transfer", "Transfer"),
                        ],
                        help_text="Kind of transactions this category classifies",
                        max_length=20,
                    ),
                ),
                (
                    "note",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Optional note about this category",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Ledger group that owns this category",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="categories",
                        to="authentication.group",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=_timestamps()
            + [
                (
                    "amount",
                    models.BigIntegerField(
                        help_text="Amount in minor currency units (never negative)"
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("expense", "Expense"),
                            ("income", "Income"),
                            ("transfer", "Transfer"),
                        ],
                        help_text="Kind of transaction",
                        max_length=20,
                    ),
                ),
                (
                    "date",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the transaction happened",
                    ),
                ),
                (
                    "note",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Optional note about this transaction",
                    ),
                ),
                (
                    "is_highlighted",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the user flagged this transaction",
                    ),
                ),
                (
                    "recurrence_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="Recurring template that produced this transaction",
                        null=True,
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Account whose balance this transaction affects",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="ledger.account",
                    ),
                ),
                (
                    "category",
                    models.ForeignKey(
                        help_text="Category of this transaction",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="ledger.category",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who recorded this transaction",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Ledger group that owns this transaction",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="authentication.group",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(
                        fields=["account", "date"], name="ledger_txn_account_date_idx"
                    ),
                    models.Index(fields=["date"], name="ledger_txn_date_idx"),
                    models.Index(
                        fields=["account", "type", "date"],
                        name="ledger_txn_acct_type_date_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="ledger_transaction_amount_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountLimit",
            fields=_timestamps()
            + [
                (
                    "period",
                    models.CharField(
                        choices=[("week", "Weekly"), ("month", "Monthly")],
                        help_text="Window the limit is measured over",
                        max_length=10,
                    ),
                ),
                (
                    "limit",
                    models.BigIntegerField(
                        help_text="Maximum expense total per window, in minor units"
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Account this limit applies to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="limits",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "ordering": ["period", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("limit__gte", 0)),
                        name="ledger_account_limit_non_negative",
                    )
                ],
            },
        ),
    ]
