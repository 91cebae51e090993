"""
Serializers for the ledger API.

Serializer Hierarchy:
    AccountSerializer: Account with its current balance (read)
    AccountCreateSerializer: Account creation with an opening balance

    CategorySerializer: Category (read and create)

    TransactionSerializer: Transaction (read)
    TransactionCreateSerializer: Payload for recording a transaction
    TransactionUpdateSerializer: Partial patch for a transaction
    TransactionBulkUpdateSerializer: Many patches applied together

    AccountLimitSerializer: Spending limit (read and create)
    LimitUsageSerializer: Current usage of one limit

Design Decisions:
    - Read and write serializers are separate; write serializers never
      touch models and only convert request data into service parameters
    - Balances are read-only everywhere; only the ledger services move them
"""

from __future__ import annotations

from rest_framework import serializers

from ledger.models import (
    Account,
    AccountLimit,
    AccountType,
    Category,
    CategoryType,
    LimitPeriod,
    Transaction,
    TransactionType,
)
from ledger.types import (
    MAX_BULK_UPDATE,
    CreateTransactionParams,
    TransactionPatch,
    UpdateTransactionParams,
)


# =============================================================================
# Accounts
# =============================================================================


class AccountSerializer(serializers.ModelSerializer):
    """Account with its current stored balance."""

    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "type",
            "balance",
            "opening_balance",
            "note",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    """Input for creating an account."""

    name = serializers.CharField(max_length=100)
    type = serializers.ChoiceField(
        choices=AccountType.choices,
        default=AccountType.EXPENSE,
    )
    opening_balance = serializers.IntegerField(default=0)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    metadata = serializers.JSONField(required=False, default=dict)


# =============================================================================
# Categories
# =============================================================================


class CategorySerializer(serializers.ModelSerializer):
    """Transaction category."""

    type = serializers.ChoiceField(choices=CategoryType.choices)

    class Meta:
        model = Category
        fields = ["id", "name", "type", "note", "created_at"]
        read_only_fields = ["id", "created_at"]


# =============================================================================
# Transactions
# =============================================================================


class TransactionSerializer(serializers.ModelSerializer):
    """Transaction as stored."""

    account_id = serializers.UUIDField(read_only=True)
    category_id = serializers.UUIDField(read_only=True)
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "account_id",
            "category_id",
            "created_by_id",
            "amount",
            "type",
            "date",
            "note",
            "is_highlighted",
            "recurrence_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TransactionCreateSerializer(serializers.Serializer):
    """
    Input for recording a transaction.

    Only checks shapes; ownership of the account and category, the category
    type and spending limits are checked by TransactionService.
    """

    account_id = serializers.UUIDField()
    category_id = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=0)
    type = serializers.ChoiceField(choices=TransactionType.choices)
    date = serializers.DateTimeField(required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    is_highlighted = serializers.BooleanField(required=False, default=False)
    recurrence_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def to_params(self) -> CreateTransactionParams:
        return CreateTransactionParams(**self.validated_data)


class TransactionUpdateSerializer(serializers.Serializer):
    """Partial patch for a transaction. Omitted fields keep their value."""

    account_id = serializers.UUIDField(required=False)
    category_id = serializers.UUIDField(required=False)
    amount = serializers.IntegerField(required=False, min_value=0)
    type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    date = serializers.DateTimeField(required=False)
    note = serializers.CharField(required=False, allow_blank=True)
    is_highlighted = serializers.BooleanField(required=False)
    recurrence_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field must be provided.")
        return attrs

    def to_params(self) -> UpdateTransactionParams:
        return UpdateTransactionParams(**self.validated_data)


class TransactionBulkItemSerializer(TransactionUpdateSerializer):
    """One entry of a bulk update: the transaction id plus its patch."""

    id = serializers.UUIDField()

    def validate(self, attrs):
        if len(attrs) < 2:
            raise serializers.ValidationError("At least one field must be provided.")
        return attrs

    def to_patch(self, attrs) -> TransactionPatch:
        attrs = dict(attrs)
        transaction_id = attrs.pop("id")
        return TransactionPatch(transaction_id, UpdateTransactionParams(**attrs))


class TransactionBulkUpdateSerializer(serializers.Serializer):
    """Input for applying many transaction edits in one unit of work."""

    updates = TransactionBulkItemSerializer(
        many=True, allow_empty=False, max_length=MAX_BULK_UPDATE
    )

    def to_patches(self) -> list[TransactionPatch]:
        item = self.fields["updates"].child
        return [item.to_patch(attrs) for attrs in self.validated_data["updates"]]


# =============================================================================
# Limits
# =============================================================================


class AccountLimitSerializer(serializers.ModelSerializer):
    """Spending limit on an account."""

    period = serializers.ChoiceField(choices=LimitPeriod.choices)
    limit = serializers.IntegerField(min_value=0)

    class Meta:
        model = AccountLimit
        fields = ["id", "period", "limit", "created_at"]
        read_only_fields = ["id", "created_at"]


class LimitUsageSerializer(serializers.Serializer):
    """How much of a limit has been spent in its current window."""

    limit_id = serializers.UUIDField(source="limit.id")
    period = serializers.CharField(source="limit.period")
    limit = serializers.IntegerField(source="limit.limit")
    current_spent = serializers.IntegerField()
    remaining_amount = serializers.IntegerField()
    window_start = serializers.DateTimeField(source="window.start")
    window_end = serializers.DateTimeField(source="window.end")
