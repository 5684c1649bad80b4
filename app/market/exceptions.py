"""
Market data exceptions.

Exception Hierarchy:
    MarketDataError
    ├── InvalidSymbolError - Binance does not know the symbol (HTTP 400)
    └── MarketDataUnavailableError - Network failure, 5xx, or bad response
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ExternalServiceError


class MarketDataError(BaseApplicationError):
    """Base exception for market data lookups."""

    default_error_code: str = "MARKET_DATA_ERROR"


class InvalidSymbolError(MarketDataError):
    """The exchange rejected the trading pair symbol."""

    default_error_code: str = "INVALID_SYMBOL"

    def __init__(self, symbol: str):
        super().__init__(f"Invalid symbol: {symbol}", details={"symbol": symbol})
        self.symbol = symbol


class MarketDataUnavailableError(MarketDataError, ExternalServiceError):
    """The exchange could not be reached or answered with garbage."""

    default_error_code: str = "MARKET_DATA_UNAVAILABLE"
