"""
Tests for the application exception hierarchy.
"""

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ImmutableRecordError,
    NotFoundError,
    ValidationError,
)
from wallets.exceptions import CurrencyMismatch, WalletNotFound


class TestBaseApplicationError:
    def test_default_error_code(self):
        exc = BaseApplicationError("Something broke")

        assert exc.error_code == "APPLICATION_ERROR"
        assert exc.details == {}
        assert str(exc) == "[APPLICATION_ERROR] Something broke"

    def test_to_dict_with_details(self):
        exc = NotFoundError(
            "Wallet not found", error_code="WALLET_NOT_FOUND", details={"wallet_id": "w1"}
        )

        assert exc.to_dict() == {
            "success": False,
            "error": "Wallet not found",
            "error_code": "WALLET_NOT_FOUND",
            "details": {"wallet_id": "w1"},
        }

    def test_to_dict_without_details(self):
        assert "details" not in ValidationError("Bad").to_dict()

    def test_repr(self):
        assert repr(ConflictError("Dup")) == (
            "ConflictError(message='Dup', error_code='CONFLICT', details={})"
        )


class TestHierarchy:
    def test_immutable_record_is_conflict(self):
        exc = ImmutableRecordError("no updates")

        assert isinstance(exc, ConflictError)
        assert exc.error_code == "IMMUTABLE_RECORD"

    def test_wallet_errors_map_onto_core_categories(self):
        assert isinstance(WalletNotFound("missing"), NotFoundError)
        assert isinstance(CurrencyMismatch("eur into usd"), ValidationError)
        assert WalletNotFound("missing").error_code == "WALLET_NOT_FOUND"
