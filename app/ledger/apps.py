"""
Ledger application configuration.

This app provides the personal-finance ledger with:
- Accounts with running balances kept in step with their transactions
- Transaction create/update/delete as atomic units of work
- Weekly and monthly spending limits checked before expenses are written
- Periodic reconciliation of stored balances
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    """Configuration for the ledger application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Ledger"
