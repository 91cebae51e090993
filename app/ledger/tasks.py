"""
Celery tasks for the ledger.

Usage:
    from ledger.tasks import reconcile_account_balances

    # Report drift only
    reconcile_account_balances.delay()

    # Report and repair
    reconcile_account_balances.delay(autofix=True)

Scheduled hourly via CELERY_BEAT_SCHEDULE.
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from ledger.models import Account
from ledger.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True)
def reconcile_account_balances(self, autofix: bool | None = None) -> dict:
    """
    Verify every account balance against its transaction history.

    Args:
        autofix: Repair drifted balances (default: LEDGER_RECONCILIATION_AUTOFIX)

    Returns:
        Dict with counts of checked, drifted and repaired accounts
    """
    if autofix is None:
        autofix = getattr(settings, "LEDGER_RECONCILIATION_AUTOFIX", False)

    checked = Account.objects.count()
    drifts = ReconciliationService.find_drift()

    repaired = 0
    if autofix:
        for drift in drifts:
            if ReconciliationService.repair(drift.account_id) is not None:
                repaired += 1

    logger.info(
        "Ledger reconciliation finished",
        extra={
            "task_id": self.request.id,
            "checked": checked,
            "drifted": len(drifts),
            "repaired": repaired,
        },
    )
    return {"checked": checked, "drifted": len(drifts), "repaired": repaired}
