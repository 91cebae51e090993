"""
Test configuration and fixtures for authentication tests.
"""

import pytest

from authentication.models import User
from authentication.tests.factories import GroupFactory, UserFactory


# =============================================================================
# Group Fixtures
# =============================================================================


@pytest.fixture
def group(db):
    """Create a ledger group."""
    return GroupFactory(name="Household")


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(group):
    """Create a user belonging to ``group``."""
    return UserFactory(group=group)


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!"
    )
