"""
Exchange adapters for the market app.

Usage:
    from market.adapters import build_binance_adapter

    adapter = build_binance_adapter()
    quote = adapter.get_price("BTCUSDT")
"""

from market.adapters.binance_adapter import (
    BinanceAdapter,
    PriceQuote,
    Ticker24h,
    TradingPair,
    build_binance_adapter,
)

__all__ = [
    "BinanceAdapter",
    "PriceQuote",
    "Ticker24h",
    "TradingPair",
    "build_binance_adapter",
]
