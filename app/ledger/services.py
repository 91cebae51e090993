"""
Ledger service layer.

TransactionService is the only code path that writes transactions or
account balances. Each of its mutations runs as one unit of work:

    lock account row(s) -> check limits -> write transaction -> write balance

and either all of it commits or none of it does. Concurrent mutations of
the same account serialize on the account row lock; mutations of different
accounts do not wait on each other.

Usage:
    from ledger.services import TransactionService
    from ledger.types import (
        CreateTransactionParams,
        TransactionPatch,
        UpdateTransactionParams,
    )

    txn = TransactionService.create_transaction(user, CreateTransactionParams(
        account_id=account.id,
        category_id=category.id,
        amount=25000,
        type="income",
    ))
    TransactionService.update_transaction(user, txn.id, UpdateTransactionParams(amount=15000))
    TransactionService.bulk_update(user, [
        TransactionPatch(txn.id, UpdateTransactionParams(note="groceries")),
        TransactionPatch(other.id, UpdateTransactionParams(account_id=savings.id)),
    ])
    TransactionService.delete_transaction(user, txn.id)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from django.db import OperationalError
from django.db.models import F
from django.utils import timezone

from core.services import BaseService, ServiceResult

from .balances import (
    affects_balance,
    effect_of,
    effect_of_deletion,
    net_delta_for_update,
)
from .exceptions import (
    AccountNotFound,
    CategoryNotFound,
    ConsistencyFault,
    TransactionNotFound,
    TransactionValidationError,
)
from .limits import LimitValidationService
from .locks import lock_account, lock_accounts
from .models import (
    Account,
    AccountLimit,
    AccountType,
    Category,
    CategoryType,
    LimitPeriod,
    Transaction,
    TransactionType,
)
from .types import MAX_BULK_UPDATE

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

    from .types import (
        CreateTransactionParams,
        TransactionPatch,
        UpdateTransactionParams,
    )

REQUIRED = "This field is required."


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _aware(moment: datetime) -> datetime:
    """Interpret a naive datetime in the current time zone."""
    if timezone.is_naive(moment):
        return timezone.make_aware(moment)
    return moment


def _apply_delta(account: Account, delta: int) -> int:
    """
    Add ``delta`` to a locked account's balance.

    Returns:
        The balance after the write
    """
    if delta:
        Account.objects.filter(pk=account.pk).update(
            balance=F("balance") + delta,
            updated_at=timezone.now(),
        )
        account.balance += delta
    return account.balance


class AccountService(BaseService):
    """
    Account, category and limit lookups and creation.

    Lookups are scoped to the actor's group; rows of other groups are
    reported as not found.
    """

    @classmethod
    def create_account(
        cls,
        actor: User,
        *,
        name: str,
        type: str = AccountType.EXPENSE,
        opening_balance: int = 0,
        note: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult[Account]:
        """
        Create an account seeded with an opening balance.

        The opening balance is the only balance value ever written outside
        TransactionService.
        """
        if actor.group_id is None:
            return ServiceResult.failure(
                "User does not belong to a ledger group", "NO_GROUP"
            )

        errors: dict[str, list[str]] = {}
        if not name or not name.strip():
            errors["name"] = [REQUIRED]
        if type not in AccountType.values:
            errors["type"] = [f"Must be one of: {', '.join(AccountType.values)}."]
        if isinstance(opening_balance, bool) or not isinstance(opening_balance, int):
            errors["opening_balance"] = ["Must be an integer amount in minor units."]
        if errors:
            return ServiceResult.failure("Validation failed", "VALIDATION_ERROR", errors)

        account = Account.objects.create(
            group_id=actor.group_id,
            name=name.strip(),
            type=type,
            balance=opening_balance,
            opening_balance=opening_balance,
            note=note,
            metadata=metadata or {},
        )
        cls.get_logger().info(
            "Account created",
            extra={
                "account_id": str(account.id),
                "group_id": str(actor.group_id),
                "opening_balance": opening_balance,
            },
        )
        return ServiceResult.success(account)

    @staticmethod
    def get_account(actor: User, account_id: uuid.UUID) -> Account:
        """
        Raises:
            AccountNotFound: If the account is not in the actor's group
        """
        account = Account.objects.for_group(actor.group_id).filter(id=account_id).first()
        if account is None:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )
        return account

    @staticmethod
    def get_category(actor: User, category_id: uuid.UUID) -> Category:
        """
        Raises:
            CategoryNotFound: If the category is not in the actor's group
        """
        category = (
            Category.objects.for_group(actor.group_id).filter(id=category_id).first()
        )
        if category is None:
            raise CategoryNotFound(
                f"Category {category_id} not found",
                details={"category_id": str(category_id)},
            )
        return category

    @classmethod
    def create_category(
        cls,
        actor: User,
        *,
        name: str,
        type: str,
        note: str = "",
    ) -> ServiceResult[Category]:
        if actor.group_id is None:
            return ServiceResult.failure(
                "User does not belong to a ledger group", "NO_GROUP"
            )

        errors: dict[str, list[str]] = {}
        if not name or not name.strip():
            errors["name"] = [REQUIRED]
        if type not in CategoryType.values:
            errors["type"] = [f"Must be one of: {', '.join(CategoryType.values)}."]
        if errors:
            return ServiceResult.failure("Validation failed", "VALIDATION_ERROR", errors)

        category = Category.objects.create(
            group_id=actor.group_id, name=name.strip(), type=type, note=note
        )
        return ServiceResult.success(category)

    @classmethod
    def add_limit(
        cls,
        actor: User,
        account_id: uuid.UUID,
        *,
        period: str,
        limit: int,
    ) -> ServiceResult[AccountLimit]:
        """
        Attach a weekly or monthly spending limit to an account.

        Raises:
            AccountNotFound: If the account is not in the actor's group
        """
        account = cls.get_account(actor, account_id)

        errors: dict[str, list[str]] = {}
        if period not in LimitPeriod.values:
            errors["period"] = [f"Must be one of: {', '.join(LimitPeriod.values)}."]
        if isinstance(limit, bool) or not isinstance(limit, int):
            errors["limit"] = ["Must be an integer amount in minor units."]
        elif limit < 0:
            errors["limit"] = ["Must be zero or greater."]
        if errors:
            return ServiceResult.failure("Validation failed", "VALIDATION_ERROR", errors)

        account_limit = AccountLimit.objects.create(
            account=account, period=period, limit=limit
        )
        cls.get_logger().info(
            "Account limit added",
            extra={
                "account_id": str(account.id),
                "period": period,
                "limit": limit,
            },
        )
        return ServiceResult.success(account_limit)


class TransactionService(BaseService):
    """
    Ledger consistency engine.

    Creates, edits and deletes transactions while keeping every account's
    stored balance equal to its opening balance plus the signed effect of
    its transactions. Transfers are recorded but never change a balance.

    All methods are class methods - no instance state is maintained.
    Errors propagate to the caller untouched; nothing is retried here.
    """

    # =========================================================================
    # Reads
    # =========================================================================

    @staticmethod
    def list_transactions(actor: User) -> QuerySet[Transaction]:
        return Transaction.objects.for_group(actor.group_id).select_related(
            "account", "category"
        )

    @classmethod
    def get_transaction(cls, actor: User, transaction_id: uuid.UUID) -> Transaction:
        """
        Raises:
            TransactionNotFound: If the transaction is not in the actor's group
        """
        transaction = cls.list_transactions(actor).filter(id=transaction_id).first()
        if transaction is None:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )
        return transaction

    # =========================================================================
    # Mutations
    # =========================================================================

    @classmethod
    def create_transaction(
        cls,
        actor: User,
        params: CreateTransactionParams,
    ) -> Transaction:
        """
        Record a transaction and apply its effect to the account balance.

        Args:
            actor: Requesting user; scopes every lookup to their group
            params: Transaction payload

        Returns:
            The persisted Transaction

        Raises:
            TransactionValidationError: Missing/invalid fields, or a category
                whose type does not match an income/expense transaction
            AccountNotFound: Account not in the actor's group
            CategoryNotFound: Category not in the actor's group
            LimitExceededError: An expense would exceed an account limit
            ConsistencyFault: The database aborted the unit of work
        """
        cls._validate_payload(
            amount=params.amount,
            type=params.type,
            account_id=params.account_id,
            category_id=params.category_id,
            partial=False,
        )
        txn_type = TransactionType(params.type)
        date = _aware(params.date) if params.date is not None else timezone.now()

        category = AccountService.get_category(actor, params.category_id)
        cls._check_category_type(category, txn_type)

        try:
            with cls.atomic():
                if affects_balance(txn_type):
                    account = lock_account(params.account_id, group_id=actor.group_id)
                    LimitValidationService.validate(
                        account, type=txn_type, amount=params.amount, date=date
                    ).raise_if_invalid()
                else:
                    account = AccountService.get_account(actor, params.account_id)

                transaction = Transaction.objects.create(
                    group_id=actor.group_id,
                    account=account,
                    category=category,
                    created_by=actor,
                    amount=params.amount,
                    type=txn_type,
                    date=date,
                    note=params.note,
                    is_highlighted=params.is_highlighted,
                    recurrence_id=params.recurrence_id,
                )
                delta = effect_of(txn_type, params.amount)
                balance = _apply_delta(account, delta)
        except OperationalError as exc:
            raise cls._lock_failure("create", exc) from exc

        cls.get_logger().info(
            "Transaction created",
            extra={
                "transaction_id": str(transaction.id),
                "account_id": str(account.id),
                "type": txn_type.value,
                "delta": delta,
                "balance": balance,
            },
        )
        return transaction

    @classmethod
    def update_transaction(
        cls,
        actor: User,
        transaction_id: uuid.UUID,
        patch: UpdateTransactionParams,
    ) -> Transaction:
        """
        Edit a transaction and move its balance effect accordingly.

        On the same account the net delta (new effect minus old effect) is
        applied. When the account changes, the old effect is withdrawn from
        the old account and the new effect applied to the new one, with both
        rows locked in id order.

        Returns:
            The updated Transaction

        Raises:
            TransactionNotFound: Transaction not in the actor's group
            TransactionValidationError: Invalid patch values
            AccountNotFound: New account not in the actor's group
            CategoryNotFound: New category not in the actor's group
            LimitExceededError: The edit would exceed an account limit
            ConsistencyFault: The current account vanished, or the database
                aborted the unit of work
        """
        changes = cls._validate_patch(patch)

        try:
            with cls.atomic():
                transaction, adjustments = cls._apply_update(
                    actor, transaction_id, changes
                )
        except OperationalError as exc:
            raise cls._lock_failure("update", exc) from exc

        cls.get_logger().info(
            "Transaction updated",
            extra={
                "transaction_id": str(transaction.id),
                "changed_fields": sorted(changes),
                "adjustments": [
                    {"account_id": str(account.id), "delta": delta, "balance": account.balance}
                    for account, delta in adjustments
                ],
            },
        )
        return transaction

    @classmethod
    def bulk_update(
        cls,
        actor: User,
        patches: list[TransactionPatch],
    ) -> list[Transaction]:
        """
        Apply many transaction edits as a single unit of work.

        Every account touched by any edit is locked up front in id order;
        the edits then run one after another through the same balance logic
        as update_transaction(), so each one sees the balances and limit
        usage left by the edits before it. If any edit fails, none of them
        is applied.

        Args:
            actor: Requesting user
            patches: Edits to apply, in order; each transaction at most once

        Returns:
            The updated transactions, in the order of ``patches``

        Raises:
            TransactionValidationError: Empty or oversized batch, repeated
                transaction, or invalid patch values (keyed by position)
            TransactionNotFound: A transaction is not in the actor's group
            AccountNotFound: A new account is not in the actor's group
            CategoryNotFound: A new category is not in the actor's group
            LimitExceededError: An edit would exceed an account limit
            ConsistencyFault: An account vanished, or the database aborted
                the unit of work
        """
        changes_by_position = cls._validate_bulk(patches)

        try:
            with cls.atomic():
                cls._lock_bulk_accounts(actor, patches, changes_by_position)
                results = [
                    cls._apply_update(actor, item.transaction_id, changes)
                    for item, changes in zip(patches, changes_by_position)
                ]
        except OperationalError as exc:
            raise cls._lock_failure("bulk_update", exc) from exc

        touched = {}
        for _, adjustments in results:
            for account, _delta in adjustments:
                touched[str(account.id)] = account.balance
        cls.get_logger().info(
            "Transactions bulk updated",
            extra={
                "transaction_count": len(results),
                "balances": touched,
            },
        )
        return [transaction for transaction, _ in results]

    @classmethod
    def _apply_update(
        cls,
        actor: User,
        transaction_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> tuple[Transaction, list[tuple[Account, int]]]:
        """
        Apply one validated patch. Must run inside the caller's unit of work.

        Returns:
            The updated transaction and the (account, delta) pairs written
        """
        transaction = (
            Transaction.objects.select_for_update()
            .filter(id=transaction_id, group_id=actor.group_id)
            .first()
        )
        if transaction is None or actor.group_id is None:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )

        old_type = TransactionType(transaction.type)
        old_amount = transaction.amount
        old_account_id = transaction.account_id

        new_type = TransactionType(changes.get("type", old_type))
        new_amount = changes.get("amount", old_amount)
        new_account_id = (
            uuid.UUID(str(changes["account_id"]))
            if "account_id" in changes
            else old_account_id
        )
        new_date = changes.get("date", transaction.date)

        if "category_id" in changes or "type" in changes:
            category = (
                AccountService.get_category(actor, changes["category_id"])
                if "category_id" in changes
                else transaction.category
            )
            cls._check_category_type(category, new_type)
            transaction.category = category

        balance_fields_changed = (
            new_type != old_type
            or new_amount != old_amount
            or new_account_id != old_account_id
            or new_date != transaction.date
        )
        touches_balance = affects_balance(old_type) or affects_balance(new_type)

        if new_account_id != old_account_id:
            if touches_balance:
                accounts = cls._lock_pair(actor, old_account_id, new_account_id)
            else:
                accounts = {
                    new_account_id: AccountService.get_account(actor, new_account_id)
                }
            new_account = accounts[new_account_id]

            if new_type == TransactionType.EXPENSE:
                LimitValidationService.validate(
                    new_account,
                    type=new_type,
                    amount=new_amount,
                    date=new_date,
                    exclude_transaction_id=transaction.id,
                ).raise_if_invalid()

            adjustments = []
            if affects_balance(old_type):
                adjustments.append(
                    (accounts[old_account_id], effect_of_deletion(old_type, old_amount))
                )
            if affects_balance(new_type):
                adjustments.append((new_account, effect_of(new_type, new_amount)))
            transaction.account = new_account

        elif balance_fields_changed and touches_balance:
            account = cls._lock_current(old_account_id)

            if new_type == TransactionType.EXPENSE:
                LimitValidationService.validate(
                    account,
                    type=new_type,
                    amount=new_amount,
                    date=new_date,
                    exclude_transaction_id=transaction.id,
                ).raise_if_invalid()

            adjustments = [
                (
                    account,
                    net_delta_for_update(old_type, old_amount, new_type, new_amount),
                )
            ]
        else:
            adjustments = []

        for field_name in ("amount", "date", "note", "is_highlighted", "recurrence_id"):
            if field_name in changes:
                setattr(transaction, field_name, changes[field_name])
        transaction.type = new_type
        transaction.save()

        for account, delta in adjustments:
            _apply_delta(account, delta)
        return transaction, adjustments

    @classmethod
    def delete_transaction(cls, actor: User, transaction_id: uuid.UUID) -> Transaction:
        """
        Delete a transaction and reverse its balance effect.

        Returns:
            The deleted row's pre-image

        Raises:
            TransactionNotFound: Transaction not in the actor's group
            ConsistencyFault: The account vanished, or the database aborted
                the unit of work
        """
        try:
            with cls.atomic():
                transaction = (
                    Transaction.objects.select_for_update()
                    .filter(id=transaction_id, group_id=actor.group_id)
                    .first()
                )
                if transaction is None or actor.group_id is None:
                    raise TransactionNotFound(
                        f"Transaction {transaction_id} not found",
                        details={"transaction_id": str(transaction_id)},
                    )

                delta = 0
                if affects_balance(transaction.type):
                    account = cls._lock_current(transaction.account_id)
                    delta = effect_of_deletion(transaction.type, transaction.amount)
                    _apply_delta(account, delta)

                Transaction.objects.filter(pk=transaction.pk).delete()
        except OperationalError as exc:
            raise cls._lock_failure("delete", exc) from exc

        cls.get_logger().info(
            "Transaction deleted",
            extra={
                "transaction_id": str(transaction.id),
                "account_id": str(transaction.account_id),
                "delta": delta,
            },
        )
        return transaction

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _validate_patch(cls, patch: UpdateTransactionParams) -> dict[str, Any]:
        """
        Validate a partial patch.

        Returns:
            The patch's changes, with a naive ``date`` made aware

        Raises:
            TransactionValidationError: With every field error found
        """
        changes = patch.changes()
        cls._validate_payload(
            amount=patch.amount,
            type=patch.type,
            account_id=patch.account_id,
            category_id=patch.category_id,
            partial=True,
        )
        if "date" in changes:
            changes["date"] = _aware(changes["date"])
        return changes

    @classmethod
    def _validate_bulk(cls, patches: list[TransactionPatch]) -> list[dict[str, Any]]:
        """
        Validate every entry of a bulk update before anything is locked.

        Raises:
            TransactionValidationError: Field errors keyed by position
        """
        if not patches:
            raise TransactionValidationError(
                "Bulk update needs at least one transaction",
                details={"updates": [REQUIRED]},
            )
        if len(patches) > MAX_BULK_UPDATE:
            raise TransactionValidationError(
                f"Bulk update accepts at most {MAX_BULK_UPDATE} transactions",
                details={"updates": [f"Ensure this list has at most {MAX_BULK_UPDATE} items."]},
            )

        errors: dict[str, Any] = {}
        seen: set[str] = set()
        changes_by_position = []
        for position, item in enumerate(patches):
            key = str(item.transaction_id)
            if key in seen:
                errors[str(position)] = {"transaction_id": ["Transaction appears more than once."]}
                changes_by_position.append({})
                continue
            seen.add(key)
            try:
                changes_by_position.append(cls._validate_patch(item.patch))
            except TransactionValidationError as exc:
                errors[str(position)] = exc.details
                changes_by_position.append({})

        if errors:
            raise TransactionValidationError("Invalid bulk update", details={"updates": errors})
        return changes_by_position

    @staticmethod
    def _lock_bulk_accounts(
        actor: User,
        patches: list[TransactionPatch],
        changes_by_position: list[dict[str, Any]],
    ) -> None:
        """
        Lock the current and target accounts of every edit in one id-ordered pass.

        A missing transaction or target account is a bad reference; a
        missing current account is a consistency fault.
        """
        transaction_ids = [item.transaction_id for item in patches]
        current = dict(
            Transaction.objects.filter(
                id__in=transaction_ids, group_id=actor.group_id
            ).values_list("id", "account_id")
        )
        for transaction_id in transaction_ids:
            if uuid.UUID(str(transaction_id)) not in current or actor.group_id is None:
                raise TransactionNotFound(
                    f"Transaction {transaction_id} not found",
                    details={"transaction_id": str(transaction_id)},
                )

        targets = {
            uuid.UUID(str(changes["account_id"]))
            for changes in changes_by_position
            if "account_id" in changes
        }
        for account_id in targets:
            AccountService.get_account(actor, account_id)

        try:
            lock_accounts(set(current.values()) | targets)
        except AccountNotFound as exc:
            raise ConsistencyFault(
                "Account disappeared while transactions were being updated",
                details=exc.details,
            ) from exc

    @staticmethod
    def _validate_payload(
        *,
        amount: Any,
        type: Any,
        account_id: Any,
        category_id: Any,
        partial: bool,
    ) -> None:
        """
        Raises:
            TransactionValidationError: With every field error found
        """
        errors: dict[str, list[str]] = {}

        if amount is None:
            if not partial:
                errors["amount"] = [REQUIRED]
        elif isinstance(amount, bool) or not isinstance(amount, int):
            errors["amount"] = ["Must be an integer amount in minor units."]
        elif amount < 0:
            errors["amount"] = ["Must be zero or greater."]

        if type is None:
            if not partial:
                errors["type"] = [REQUIRED]
        elif type not in TransactionType.values:
            errors["type"] = [f"Must be one of: {', '.join(TransactionType.values)}."]

        for field_name, value in (("account_id", account_id), ("category_id", category_id)):
            if value is None:
                if not partial:
                    errors[field_name] = [REQUIRED]
            elif not _is_uuid(value):
                errors[field_name] = ["Must be a valid UUID."]

        if errors:
            raise TransactionValidationError("Invalid transaction", details=errors)

    @staticmethod
    def _check_category_type(category: Category, txn_type: TransactionType) -> None:
        if txn_type == TransactionType.TRANSFER or category.type == txn_type:
            return
        raise TransactionValidationError(
            f"Category type '{category.type}' does not match transaction type "
            f"'{txn_type.value}'",
            error_code="CATEGORY_TYPE_MISMATCH",
            details={"category_id": [f"Category must be of type '{txn_type.value}'."]},
        )

    @staticmethod
    def _lock_current(account_id: uuid.UUID) -> Account:
        """Lock the account an existing transaction already points at."""
        try:
            return lock_account(account_id)
        except AccountNotFound as exc:
            raise ConsistencyFault(
                f"Account {account_id} disappeared while its transaction was being changed",
                details={"account_id": str(account_id)},
            ) from exc

    @staticmethod
    def _lock_pair(
        actor: User,
        old_account_id: uuid.UUID,
        new_account_id: uuid.UUID,
    ) -> dict[uuid.UUID, Account]:
        """
        Lock the current and the target account of a cross-account edit.

        A missing target is a bad reference; a missing current account is a
        consistency fault.
        """
        AccountService.get_account(actor, new_account_id)
        try:
            return lock_accounts([old_account_id, new_account_id])
        except AccountNotFound as exc:
            raise ConsistencyFault(
                "Account disappeared while a transaction was being moved",
                details=exc.details,
            ) from exc

    @classmethod
    def _lock_failure(cls, operation: str, exc: OperationalError) -> ConsistencyFault:
        cls.get_logger().error(
            "Ledger unit of work aborted by the database",
            extra={"operation": operation, "error": str(exc)},
        )
        return ConsistencyFault(
            "The ledger could not complete the operation; please retry",
            details={"operation": operation},
        )
