"""
Row-level locking for account balance updates.

Balance writes are serialized with the database's ``SELECT ... FOR UPDATE``
so that concurrent mutations of the same account apply one after the
other, across any number of processes and hosts. Mutations of different
accounts never wait on each other.

Usage:
    from django.db import transaction
    from ledger.locks import lock_account

    with transaction.atomic():
        account = lock_account(account_id, group_id=user.group_id)
        Account.objects.filter(pk=account.pk).update(balance=F("balance") + delta)
        # lock released on commit or rollback

Note:
    On SQLite ``select_for_update()`` is a no-op; SQLite serializes writers
    at the database level instead.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.transaction import TransactionManagementError

from .exceptions import AccountNotFound
from .models import Account

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def _require_atomic_block(operation: str) -> None:
    if not transaction.get_connection().in_atomic_block:
        raise TransactionManagementError(
            f"{operation}() must be called inside transaction.atomic(); "
            "the lock would be released before the balance is written."
        )


def lock_account(
    account_id: uuid.UUID,
    *,
    group_id: uuid.UUID | None = None,
) -> Account:
    """
    Lock one account row until the enclosing unit of work ends.

    Blocks while another unit of work holds the same row.

    Args:
        account_id: UUID of the account
        group_id: When given, the account must belong to this group

    Returns:
        The locked account with a freshly read balance

    Raises:
        TransactionManagementError: If called outside transaction.atomic()
        AccountNotFound: If no such account exists (in the group)
    """
    _require_atomic_block("lock_account")

    queryset = Account.objects.select_for_update().filter(id=account_id)
    if group_id is not None:
        queryset = queryset.filter(group_id=group_id)

    account = queryset.first()
    if account is None:
        logger.warning(
            "Account lock failed: account not found",
            extra={"account_id": str(account_id)},
        )
        raise AccountNotFound(
            f"Account {account_id} not found",
            details={"account_id": str(account_id)},
        )
    return account


def lock_accounts(
    account_ids: Iterable[uuid.UUID],
    *,
    group_id: uuid.UUID | None = None,
) -> dict[uuid.UUID, Account]:
    """
    Lock several account rows in ascending id order.

    Every caller acquires locks in the same order, so two units of work
    locking overlapping sets of accounts cannot deadlock.

    Returns:
        Mapping of account id to locked account

    Raises:
        TransactionManagementError: If called outside transaction.atomic()
        AccountNotFound: If any of the accounts does not exist
    """
    _require_atomic_block("lock_accounts")

    wanted = {uuid.UUID(str(account_id)) for account_id in account_ids}
    queryset = Account.objects.select_for_update().filter(id__in=wanted)
    if group_id is not None:
        queryset = queryset.filter(group_id=group_id)

    accounts = {account.id: account for account in queryset.order_by("id")}

    for account_id in sorted(wanted):
        if account_id not in accounts:
            logger.warning(
                "Account lock failed: account not found",
                extra={"account_id": str(account_id)},
            )
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )
    return accounts
