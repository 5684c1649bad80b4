"""
DRF serializers for market data endpoints.

Request serializers normalize symbols to upper case. Response
serializers render the adapter and service dataclasses.
"""

from __future__ import annotations

import re
from decimal import Decimal

from rest_framework import serializers

SYMBOL_RE = re.compile(r"^[A-Z0-9]{2,20}$")

# Binance accepts at most 100 symbols per batched price request
MAX_SYMBOLS = 100


def validate_symbol(value: str) -> str:
    value = value.strip().upper()
    if not SYMBOL_RE.match(value):
        raise serializers.ValidationError(f"Invalid symbol format: {value!r}")
    return value


# =============================================================================
# Requests
# =============================================================================


class SymbolQuerySerializer(serializers.Serializer):
    symbol = serializers.CharField(default="BTCUSDT", max_length=20)

    def validate_symbol(self, value: str) -> str:
        return validate_symbol(value)


class SymbolsQuerySerializer(serializers.Serializer):
    """Comma-separated list of symbols, e.g. ``BTCUSDT,ETHUSDT``."""

    symbols = serializers.CharField()

    def validate_symbols(self, value: str) -> list[str]:
        symbols = [validate_symbol(s) for s in value.split(",") if s.strip()]
        if not symbols:
            raise serializers.ValidationError("At least one symbol is required.")
        if len(symbols) > MAX_SYMBOLS:
            raise serializers.ValidationError(f"At most {MAX_SYMBOLS} symbols are allowed.")
        return symbols


class ConvertRequestSerializer(serializers.Serializer):
    """
    Request body for POST /api/v1/crypto/convert/.

    Fields:
        from_symbol: Asset being converted (e.g. 'BTC')
        to_symbol: Asset to price it in (e.g. 'USDT')
        amount: Positive amount of from_symbol
    """

    from_symbol = serializers.CharField(max_length=10)
    to_symbol = serializers.CharField(max_length=10)
    amount = serializers.DecimalField(
        max_digits=30,
        decimal_places=8,
        min_value=Decimal("0.00000001"),
    )

    def validate_from_symbol(self, value: str) -> str:
        return validate_symbol(value)

    def validate_to_symbol(self, value: str) -> str:
        return validate_symbol(value)


# =============================================================================
# Responses
# =============================================================================


class PriceQuoteSerializer(serializers.Serializer):
    symbol = serializers.CharField()
    price = serializers.DecimalField(max_digits=None, decimal_places=8)
    timestamp = serializers.DateTimeField()


class Ticker24hSerializer(serializers.Serializer):
    symbol = serializers.CharField()
    price_change = serializers.CharField()
    price_change_percent = serializers.CharField()
    last_price = serializers.CharField()
    high_price = serializers.CharField()
    low_price = serializers.CharField()
    volume = serializers.CharField()
    quote_volume = serializers.CharField()


class TradingPairSerializer(serializers.Serializer):
    symbol = serializers.CharField()
    base_asset = serializers.CharField()
    quote_asset = serializers.CharField()
    status = serializers.CharField()


class ConversionQuoteSerializer(serializers.Serializer):
    from_asset = serializers.CharField()
    to_asset = serializers.CharField()
    amount = serializers.DecimalField(max_digits=None, decimal_places=8)
    converted_amount = serializers.DecimalField(max_digits=None, decimal_places=8)
    rate = serializers.DecimalField(max_digits=None, decimal_places=8)
    outcome = serializers.CharField(source="outcome.value")
