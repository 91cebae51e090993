"""
Tests for the JWT token endpoints.
"""

from rest_framework import status
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory

TOKEN_URL = "/api/v1/auth/token/"
TOKEN_REFRESH_URL = "/api/v1/auth/token/refresh/"


class TestTokenObtain:
    """Tests for POST /api/v1/auth/token/."""

    def test_valid_credentials_return_token_pair(self, db):
        UserFactory(email="owner@example.com", password="TestPass123!")

        response = APIClient().post(
            TOKEN_URL,
            {"email": "owner@example.com", "password": "TestPass123!"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert {"access", "refresh"} <= set(response.data)

    def test_wrong_password_rejected(self, db):
        UserFactory(email="owner@example.com", password="TestPass123!")

        response = APIClient().post(
            TOKEN_URL,
            {"email": "owner@example.com", "password": "wrong"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_access_token_authenticates_ledger_requests(self, db):
        UserFactory(email="owner@example.com", password="TestPass123!")
        client = APIClient()
        tokens = client.post(
            TOKEN_URL,
            {"email": "owner@example.com", "password": "TestPass123!"},
            format="json",
        ).data

        client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = client.get("/api/v1/ledger/accounts/")

        assert response.status_code == status.HTTP_200_OK


class TestTokenRefresh:
    """Tests for POST /api/v1/auth/token/refresh/."""

    def test_refresh_returns_new_access_token(self, db):
        UserFactory(email="owner@example.com", password="TestPass123!")
        client = APIClient()
        tokens = client.post(
            TOKEN_URL,
            {"email": "owner@example.com", "password": "TestPass123!"},
            format="json",
        ).data

        response = client.post(TOKEN_REFRESH_URL, {"refresh": tokens["refresh"]}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data
