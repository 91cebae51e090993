"""
Tests for the application exception hierarchy.
"""

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError, ValidationError


class TestBaseApplicationError:
    """Tests for BaseApplicationError."""

    def test_defaults_error_code_per_class(self):
        assert BaseApplicationError("boom").error_code == "APPLICATION_ERROR"
        assert ValidationError("bad").error_code == "VALIDATION_ERROR"
        assert NotFoundError("missing").error_code == "NOT_FOUND"
        assert ConflictError("busy").error_code == "CONFLICT"

    def test_explicit_error_code_wins(self):
        error = ValidationError("bad", error_code="CATEGORY_TYPE_MISMATCH")

        assert error.error_code == "CATEGORY_TYPE_MISMATCH"

    def test_to_dict_includes_details_when_present(self):
        error = NotFoundError("Account not found", details={"account_id": "abc"})

        assert error.to_dict() == {
            "error": "Account not found",
            "error_code": "NOT_FOUND",
            "details": {"account_id": "abc"},
        }

    def test_to_dict_omits_empty_details(self):
        assert "details" not in ConflictError("busy").to_dict()

    def test_str_includes_code(self):
        assert str(ConflictError("busy")) == "[CONFLICT] busy"
