"""
ViewSets for the ledger API.

URL Structure:
    /api/v1/ledger/transactions/                 GET, POST
    /api/v1/ledger/transactions/{id}/            GET, PATCH, DELETE
    /api/v1/ledger/transactions/bulk-update/     POST
    /api/v1/ledger/accounts/                     GET, POST
    /api/v1/ledger/accounts/{id}/                GET
    /api/v1/ledger/accounts/{id}/limits/         GET, POST
    /api/v1/ledger/accounts/{id}/limit-status/   GET
    /api/v1/ledger/categories/                   GET, POST

Error Responses:
    400: Invalid payload, or an account/category outside the user's group
    404: Transaction (or account, for detail routes) not found
    409: The unit of work was aborted; safe to retry
    422: A spending limit would be exceeded

Design Decisions:
    - Every query is scoped to the requesting user's group
    - Transaction writes go through TransactionService only; the views never
      save transactions or balances themselves
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.exceptions import (
    AccountNotFound,
    CategoryNotFound,
    ConsistencyFault,
    LedgerError,
    LimitExceededError,
    TransactionNotFound,
    TransactionValidationError,
)
from ledger.filters import TransactionFilter
from ledger.limits import LimitValidationService
from ledger.models import Account, AccountLimit, Category
from ledger.serializers import (
    AccountCreateSerializer,
    AccountLimitSerializer,
    AccountSerializer,
    CategorySerializer,
    LimitUsageSerializer,
    TransactionBulkUpdateSerializer,
    TransactionCreateSerializer,
    TransactionSerializer,
    TransactionUpdateSerializer,
)
from ledger.services import AccountService, TransactionService

UUID_LOOKUP_REGEX = "[0-9a-fA-F-]{36}"

ERROR_STATUS = (
    (TransactionNotFound, status.HTTP_404_NOT_FOUND),
    (AccountNotFound, status.HTTP_400_BAD_REQUEST),
    (CategoryNotFound, status.HTTP_400_BAD_REQUEST),
    (TransactionValidationError, status.HTTP_400_BAD_REQUEST),
    (LimitExceededError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConsistencyFault, status.HTTP_409_CONFLICT),
)


def ledger_error_response(exc: LedgerError) -> Response:
    """Translate a ledger error into an API error response."""
    for error_class, status_code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return Response(exc.to_dict(), status=status_code)
    return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)


def result_error_response(result) -> Response:
    return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_transactions",
        summary="List transactions",
        tags=["Ledger - Transactions"],
    ),
    retrieve=extend_schema(
        operation_id="get_transaction",
        summary="Get transaction",
        tags=["Ledger - Transactions"],
    ),
    create=extend_schema(
        operation_id="create_transaction",
        summary="Record transaction",
        tags=["Ledger - Transactions"],
        request=TransactionCreateSerializer,
        responses={
            201: TransactionSerializer,
            400: OpenApiResponse(description="Invalid payload or reference"),
            409: OpenApiResponse(description="Aborted; retry"),
            422: OpenApiResponse(description="Spending limit exceeded"),
        },
    ),
    partial_update=extend_schema(
        operation_id="update_transaction",
        summary="Update transaction",
        tags=["Ledger - Transactions"],
        request=TransactionUpdateSerializer,
        responses={
            200: TransactionSerializer,
            400: OpenApiResponse(description="Invalid patch or reference"),
            404: OpenApiResponse(description="Transaction not found"),
            409: OpenApiResponse(description="Aborted; retry"),
            422: OpenApiResponse(description="Spending limit exceeded"),
        },
    ),
    destroy=extend_schema(
        operation_id="delete_transaction",
        summary="Delete transaction",
        tags=["Ledger - Transactions"],
    ),
)
class TransactionViewSet(viewsets.ModelViewSet):
    """
    ViewSet for ledger transactions.

    create:
        Record a transaction and apply it to the account balance.
        Expenses are checked against the account's spending limits.

    partial_update:
        Edit a transaction. The balance moves by the difference between the
        old and the new effect; moving it to another account adjusts both.

    destroy:
        Delete a transaction and reverse its balance effect.

    bulk_update:
        Apply many edits at once. Either every edit is applied or none is.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = TransactionSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = TransactionFilter
    ordering_fields = ["date", "amount", "created_at"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_queryset(self):
        return TransactionService.list_transactions(self.request.user)

    def get_serializer_class(self):
        if self.action == "create":
            return TransactionCreateSerializer
        if self.action == "partial_update":
            return TransactionUpdateSerializer
        if self.action == "bulk_update":
            return TransactionBulkUpdateSerializer
        return TransactionSerializer

    def create(self, request):
        """Record a transaction."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            transaction = TransactionService.create_transaction(
                request.user, serializer.to_params()
            )
        except LedgerError as e:
            return ledger_error_response(e)

        return Response(
            TransactionSerializer(transaction).data,
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request, pk=None):
        """Update a transaction."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            transaction = TransactionService.update_transaction(
                request.user, pk, serializer.to_params()
            )
        except LedgerError as e:
            return ledger_error_response(e)

        return Response(TransactionSerializer(transaction).data)

    def destroy(self, request, pk=None):
        """Delete a transaction."""
        try:
            TransactionService.delete_transaction(request.user, pk)
        except LedgerError as e:
            return ledger_error_response(e)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="bulk_update_transactions",
        summary="Update many transactions",
        tags=["Ledger - Transactions"],
        request=TransactionBulkUpdateSerializer,
        responses={
            200: TransactionSerializer(many=True),
            400: OpenApiResponse(description="Invalid patch or reference"),
            404: OpenApiResponse(description="Transaction not found"),
            409: OpenApiResponse(description="Aborted; retry"),
            422: OpenApiResponse(description="Spending limit exceeded"),
        },
    )
    @action(detail=False, methods=["post"], url_path="bulk-update")
    def bulk_update(self, request):
        """Apply many transaction edits in one unit of work."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            transactions = TransactionService.bulk_update(
                request.user, serializer.to_patches()
            )
        except LedgerError as e:
            return ledger_error_response(e)

        return Response(TransactionSerializer(transactions, many=True).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_accounts",
        summary="List accounts",
        tags=["Ledger - Accounts"],
    ),
    retrieve=extend_schema(
        operation_id="get_account",
        summary="Get account",
        tags=["Ledger - Accounts"],
    ),
    create=extend_schema(
        operation_id="create_account",
        summary="Create account",
        tags=["Ledger - Accounts"],
        request=AccountCreateSerializer,
        responses={201: AccountSerializer},
    ),
)
class AccountViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for accounts.

    Balances are read-only; they change only through transactions.

    limits:
        GET lists the account's spending limits, POST adds one.

    limit_status:
        Spend recorded in the current window of every limit.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer
    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_queryset(self):
        return Account.objects.for_group(self.request.user.group_id)

    def get_serializer_class(self):
        if self.action == "create":
            return AccountCreateSerializer
        if self.action == "limits":
            return AccountLimitSerializer
        if self.action == "limit_status":
            return LimitUsageSerializer
        return AccountSerializer

    def create(self, request):
        """Create an account with an opening balance."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService.create_account(request.user, **serializer.validated_data)
        if not result.success:
            return result_error_response(result)

        return Response(
            AccountSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="account_limits",
        summary="List or add spending limits",
        tags=["Ledger - Accounts"],
        request=AccountLimitSerializer,
        responses={200: AccountLimitSerializer(many=True), 201: AccountLimitSerializer},
    )
    @action(detail=True, methods=["get", "post"])
    def limits(self, request, pk=None):
        """List or add the account's spending limits."""
        account = self.get_object()

        if request.method == "GET":
            queryset = AccountLimit.objects.filter(account=account)
            return Response(AccountLimitSerializer(queryset, many=True).data)

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = AccountService.add_limit(
                request.user, account.id, **serializer.validated_data
            )
        except LedgerError as e:
            return ledger_error_response(e)

        if not result.success:
            return result_error_response(result)

        return Response(
            AccountLimitSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="account_limit_status",
        summary="Current spending against limits",
        tags=["Ledger - Accounts"],
        responses={200: LimitUsageSerializer(many=True)},
    )
    @action(detail=True, methods=["get"], url_path="limit-status")
    def limit_status(self, request, pk=None):
        """Spend and remaining headroom for every limit on the account."""
        account = self.get_object()
        usages = LimitValidationService.usage_for(account)
        return Response(LimitUsageSerializer(usages, many=True).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_categories",
        summary="List categories",
        tags=["Ledger - Categories"],
    ),
    create=extend_schema(
        operation_id="create_category",
        summary="Create category",
        tags=["Ledger - Categories"],
    ),
)
class CategoryViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """ViewSet for transaction categories."""

    permission_classes = [IsAuthenticated]
    serializer_class = CategorySerializer

    def get_queryset(self):
        return Category.objects.for_group(self.request.user.group_id)

    def create(self, request):
        """Create a category in the user's group."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AccountService.create_category(request.user, **serializer.validated_data)
        if not result.success:
            return result_error_response(result)

        return Response(
            CategorySerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )
