"""
Test configuration and fixtures for ledger tests.

This module provides:
- A group with two members and an outsider in another group
- An expense account with an opening balance of 1000.00 (100000 minor units)
- Expense, income and transfer categories
- Authenticated API clients

Usage:
    def test_example(member_client, account):
        response = member_client.get(f"/api/v1/ledger/accounts/{account.id}/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import GroupFactory, UserFactory
from ledger.models import CategoryType
from ledger.tests.factories import AccountFactory, CategoryFactory


# =============================================================================
# Group and User Fixtures
# =============================================================================


@pytest.fixture
def household(db):
    """Create the ledger group most tests work in."""
    return GroupFactory(name="Household")


@pytest.fixture
def member(household):
    """Create a user belonging to ``household``."""
    return UserFactory(group=household)


@pytest.fixture
def outsider(db):
    """Create a user in a different group."""
    return UserFactory()


@pytest.fixture
def groupless_user(db):
    """Create a user without a ledger group."""
    return UserFactory(group=None)


# =============================================================================
# Account and Category Fixtures
# =============================================================================


@pytest.fixture
def account(household):
    """Create an expense account with an opening balance of 100000."""
    return AccountFactory(group=household, name="Wallet", opening_balance=100000)


@pytest.fixture
def second_account(household):
    """Create another account in the same group."""
    return AccountFactory(group=household, name="Savings", opening_balance=50000)


@pytest.fixture
def expense_category(household):
    return CategoryFactory(group=household, name="Groceries", type=CategoryType.EXPENSE)


@pytest.fixture
def income_category(household):
    return CategoryFactory(group=household, name="Salary", type=CategoryType.INCOME)


@pytest.fixture
def transfer_category(household):
    return CategoryFactory(group=household, name="Transfer", type=CategoryType.TRANSFER)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def member_client(member):
    """API client authenticated as ``member``."""
    client = APIClient()
    client.force_authenticate(user=member)
    return client


@pytest.fixture
def outsider_client(outsider):
    """API client authenticated as ``outsider``."""
    client = APIClient()
    client.force_authenticate(user=outsider)
    return client
