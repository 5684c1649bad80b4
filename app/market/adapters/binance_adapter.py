"""
Binance public market data adapter.

All calls to the Binance REST API go through BinanceAdapter so that
timeouts, error translation and logging are handled in one place. Only
unauthenticated market data endpoints are used.

Endpoints:
- GET /api/v3/ticker/price  (single symbol or JSON list of symbols)
- GET /api/v3/ticker/24hr
- GET /api/v3/exchangeInfo

Error translation:
- HTTP 400 for a symbol lookup -> InvalidSymbolError
- Anything else (network error, timeout, 5xx, malformed body)
  -> MarketDataUnavailableError

Configuration (passed in by build_binance_adapter() from settings):
- BINANCE_BASE_URL: API root (default: https://api.binance.com)
- BINANCE_TIMEOUT_SECONDS: Request timeout (default: 10)

Usage:
    from market.adapters import build_binance_adapter

    adapter = build_binance_adapter()
    adapter.get_price("btcusdt").price  # Decimal("43250.12000000")
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import requests
from django.conf import settings
from django.utils import timezone

from market.exceptions import InvalidSymbolError, MarketDataUnavailableError

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class PriceQuote:
    """Latest price for one trading pair."""

    symbol: str
    price: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class Ticker24h:
    """
    Rolling 24 hour statistics for one trading pair.

    Values are kept as the decimal strings Binance returns.
    """

    symbol: str
    price_change: str
    price_change_percent: str
    last_price: str
    high_price: str
    low_price: str
    volume: str
    quote_volume: str


@dataclass(frozen=True)
class TradingPair:
    symbol: str
    base_asset: str
    quote_asset: str
    status: str


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


# =============================================================================
# Adapter
# =============================================================================


class BinanceAdapter:
    """
    Thin client for the Binance public REST API.

    Args:
        base_url: API root, without trailing slash
        timeout: Per-request timeout in seconds
        session: requests.Session to use (a new one if omitted)
    """

    PRICE_PATH = "/api/v3/ticker/price"
    TICKER_PATH = "/api/v3/ticker/24hr"
    EXCHANGE_INFO_PATH = "/api/v3/exchangeInfo"

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # A session passed in belongs to the caller and is not closed here
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        """Release the HTTP connection pool if this adapter created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> BinanceAdapter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ==========================================================================
    # Prices
    # ==========================================================================

    def get_price(self, symbol: str) -> PriceQuote:
        """
        Get the latest price for a symbol such as BTCUSDT.

        Raises:
            InvalidSymbolError: Binance does not list the symbol
            MarketDataUnavailableError: Binance could not be reached
        """
        symbol = normalize_symbol(symbol)
        data = self._get(self.PRICE_PATH, params={"symbol": symbol}, symbol=symbol)
        return self._parse_price(data)

    def find_price(self, symbol: str) -> PriceQuote | None:
        """
        Like get_price, but returns None for a symbol Binance does not list.

        MarketDataUnavailableError still propagates.
        """
        symbol = normalize_symbol(symbol)
        data = self._get(
            self.PRICE_PATH, params={"symbol": symbol}, symbol=symbol, missing_ok=True
        )
        if data is None:
            return None
        return self._parse_price(data)

    def get_prices(self, symbols: list[str]) -> list[PriceQuote]:
        """
        Get the latest prices for several symbols in one request.

        Raises:
            InvalidSymbolError: At least one symbol is not listed
            MarketDataUnavailableError: Binance could not be reached
        """
        normalized = [normalize_symbol(s) for s in symbols if s.strip()]
        if not normalized:
            return []

        data = self._get(
            self.PRICE_PATH,
            # Binance rejects whitespace inside the JSON array
            params={"symbols": json.dumps(normalized, separators=(",", ":"))},
            symbol=",".join(normalized),
        )
        items = data if isinstance(data, list) else [data]
        return [self._parse_price(item) for item in items]

    # ==========================================================================
    # Ticker & Exchange Info
    # ==========================================================================

    def get_24hr_ticker(self, symbol: str) -> Ticker24h:
        symbol = normalize_symbol(symbol)
        data = self._get(self.TICKER_PATH, params={"symbol": symbol}, symbol=symbol)
        try:
            return Ticker24h(
                symbol=data["symbol"],
                price_change=data["priceChange"],
                price_change_percent=data["priceChangePercent"],
                last_price=data["lastPrice"],
                high_price=data["highPrice"],
                low_price=data["lowPrice"],
                volume=data["volume"],
                quote_volume=data["quoteVolume"],
            )
        except (KeyError, TypeError) as e:
            raise MarketDataUnavailableError(
                f"Unexpected 24hr ticker response for {symbol}"
            ) from e

    def get_exchange_info(self) -> list[TradingPair]:
        """List every trading pair Binance reports."""
        data = self._get(self.EXCHANGE_INFO_PATH)
        try:
            return [
                TradingPair(
                    symbol=item["symbol"],
                    base_asset=item["baseAsset"],
                    quote_asset=item["quoteAsset"],
                    status=item["status"],
                )
                for item in data["symbols"]
            ]
        except (KeyError, TypeError) as e:
            raise MarketDataUnavailableError("Unexpected exchange info response") from e

    # ==========================================================================
    # Internal Helpers
    # ==========================================================================

    def _parse_price(self, data: Any) -> PriceQuote:
        try:
            return PriceQuote(
                symbol=data["symbol"],
                price=Decimal(str(data["price"])),
                timestamp=timezone.now(),
            )
        except (KeyError, TypeError, InvalidOperation) as e:
            raise MarketDataUnavailableError("Unexpected price response") from e

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        symbol: str | None = None,
        missing_ok: bool = False,
    ) -> Any:
        """
        GET a Binance endpoint and return the decoded JSON body.

        A 400 for a symbol lookup returns None when missing_ok is set and
        raises InvalidSymbolError otherwise. Every other failure becomes
        MarketDataUnavailableError.
        """
        url = f"{self.base_url}{path}"
        start_time = time.monotonic()

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(
                "Binance request failed",
                extra={"path": path, "symbol": symbol, "error": str(e)},
            )
            raise MarketDataUnavailableError(
                f"Failed to reach Binance: {e}", details={"path": path}
            ) from e

        duration_ms = (time.monotonic() - start_time) * 1000

        if response.status_code == 400 and symbol is not None:
            logger.info(
                "Binance rejected symbol",
                extra={"path": path, "symbol": symbol, "duration_ms": duration_ms},
            )
            if missing_ok:
                return None
            raise InvalidSymbolError(symbol)

        if not response.ok:
            logger.warning(
                "Binance returned an error status",
                extra={
                    "path": path,
                    "symbol": symbol,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            raise MarketDataUnavailableError(
                f"Binance returned HTTP {response.status_code}",
                details={"path": path, "status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MarketDataUnavailableError(
                "Binance returned a non-JSON body", details={"path": path}
            ) from e

        logger.debug(
            "Binance request completed",
            extra={"path": path, "symbol": symbol, "duration_ms": duration_ms},
        )
        return data


def build_binance_adapter() -> BinanceAdapter:
    """Build a BinanceAdapter from Django settings."""
    return BinanceAdapter(
        base_url=settings.BINANCE_BASE_URL,
        timeout=settings.BINANCE_TIMEOUT_SECONDS,
    )
