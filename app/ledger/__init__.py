"""
Personal-finance ledger.

Modules:
    models: Account, Category, Transaction, AccountLimit
    balances: Signed balance effect of each transaction type
    locks: Row locks on accounts inside a unit of work
    periods: Weekly/monthly window resolution for spending limits
    limits: Spending limit guard
    services: TransactionService (the only writer of balances) and AccountService
    reconciliation: Drift detection between stored and derived balances
    tasks: Celery task running reconciliation periodically
"""
