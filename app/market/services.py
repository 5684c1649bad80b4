"""
Price lookups and asset conversion.

PriceService.convert prices an amount of one asset in another using the
Binance spot price. It first looks up the direct pair (FROM+TO, e.g.
BTCUSDT for BTC -> USDT); when Binance does not list it, it looks up the
inverse pair (TO+FROM) and divides. The outcome is reported explicitly on
the returned ConversionQuote.

Usage:
    from market.services import build_price_service

    quote = build_price_service().convert("usdt", "btc", Decimal("100"))
    if quote.outcome == ConversionOutcome.UNAVAILABLE:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from core.services import BaseService

from market.adapters import (
    BinanceAdapter,
    PriceQuote,
    Ticker24h,
    TradingPair,
    build_binance_adapter,
)

# Binance quotes prices to 8 decimal places
QUANTUM = Decimal("0.00000001")


class ConversionOutcome(str, Enum):
    DIRECT = "direct"
    INVERSE = "inverse"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ConversionQuote:
    """
    Result of converting an amount between two assets.

    rate and converted_amount are None when outcome is UNAVAILABLE.
    """

    from_asset: str
    to_asset: str
    amount: Decimal
    converted_amount: Decimal | None
    rate: Decimal | None
    outcome: ConversionOutcome

    @property
    def is_available(self) -> bool:
        return self.outcome != ConversionOutcome.UNAVAILABLE


class PriceService(BaseService):
    """Market data operations backed by a BinanceAdapter."""

    def __init__(self, adapter: BinanceAdapter):
        self.adapter = adapter

    def close(self) -> None:
        self.adapter.close()

    def __enter__(self) -> PriceService:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_price(self, symbol: str) -> PriceQuote:
        return self.adapter.get_price(symbol)

    def get_prices(self, symbols: list[str]) -> list[PriceQuote]:
        return self.adapter.get_prices(symbols)

    def get_24hr_ticker(self, symbol: str) -> Ticker24h:
        return self.adapter.get_24hr_ticker(symbol)

    def get_exchange_info(self) -> list[TradingPair]:
        return self.adapter.get_exchange_info()

    def convert(self, from_asset: str, to_asset: str, amount: Decimal) -> ConversionQuote:
        """
        Convert amount of from_asset into to_asset.

        Args:
            from_asset: Asset being sold (e.g. 'BTC')
            to_asset: Asset being priced in (e.g. 'USDT')
            amount: Positive amount of from_asset

        Returns:
            ConversionQuote with outcome DIRECT, INVERSE or UNAVAILABLE

        Raises:
            MarketDataUnavailableError: Binance could not be reached
        """
        from_asset = from_asset.strip().upper()
        to_asset = to_asset.strip().upper()
        amount = Decimal(amount)
        logger = self.get_logger()

        direct = self.adapter.find_price(f"{from_asset}{to_asset}")
        if direct is not None:
            rate = direct.price
            outcome = ConversionOutcome.DIRECT
        else:
            inverse = self.adapter.find_price(f"{to_asset}{from_asset}")
            if inverse is None or inverse.price == 0:
                logger.info(
                    "No trading pair for conversion",
                    extra={"from_asset": from_asset, "to_asset": to_asset},
                )
                return ConversionQuote(
                    from_asset=from_asset,
                    to_asset=to_asset,
                    amount=amount,
                    converted_amount=None,
                    rate=None,
                    outcome=ConversionOutcome.UNAVAILABLE,
                )
            rate = Decimal(1) / inverse.price
            outcome = ConversionOutcome.INVERSE

        return ConversionQuote(
            from_asset=from_asset,
            to_asset=to_asset,
            amount=amount,
            converted_amount=(amount * rate).quantize(QUANTUM, rounding=ROUND_HALF_UP),
            rate=rate.quantize(QUANTUM, rounding=ROUND_HALF_UP),
            outcome=outcome,
        )


def build_price_service() -> PriceService:
    """Build a PriceService from Django settings."""
    return PriceService(adapter=build_binance_adapter())
