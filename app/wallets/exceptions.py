"""
Wallet-specific exceptions.

Exception Hierarchy:
    WalletError (base)
    ├── WalletNotFound - Wallet lookup failures
    ├── InvalidCreditAmount - Non-positive credit amounts
    └── CurrencyMismatch - Credit currency differs from wallet currency
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError


class WalletError(BaseApplicationError):
    """
    Base exception for wallet operations.

    Example:
        try:
            WalletService.credit(params)
        except WalletError as e:
            logger.error(f"Wallet credit failed: {e}")
    """

    default_error_code: str = "WALLET_ERROR"


class WalletNotFound(WalletError, NotFoundError):
    """Raised when a wallet cannot be found."""

    default_error_code: str = "WALLET_NOT_FOUND"


class InvalidCreditAmount(WalletError, ValidationError):
    """Raised when a credit amount is zero or negative."""

    default_error_code: str = "INVALID_AMOUNT"


class CurrencyMismatch(WalletError, ValidationError):
    """Raised when money in one currency is credited to a wallet in another."""

    default_error_code: str = "CURRENCY_MISMATCH"
