"""
Tests for PriceService.convert.
"""

from decimal import Decimal

import pytest
import requests

from market.exceptions import MarketDataUnavailableError
from market.services import ConversionOutcome, PriceService
from market.tests.conftest import prices_by_symbol


@pytest.fixture
def service(adapter):
    return PriceService(adapter=adapter)


class TestConvert:
    def test_direct_pair(self, service, session):
        session.get.side_effect = prices_by_symbol({"BTCUSDT": "50000.00"})

        quote = service.convert("btc", "usdt", Decimal("0.5"))

        assert quote.outcome == ConversionOutcome.DIRECT
        assert quote.from_asset == "BTC"
        assert quote.to_asset == "USDT"
        assert quote.rate == Decimal("50000.00000000")
        assert quote.converted_amount == Decimal("25000.00000000")
        assert quote.is_available
        assert session.get.call_count == 1

    def test_inverse_pair(self, service, session):
        session.get.side_effect = prices_by_symbol({"BTCUSDT": "50000"})

        quote = service.convert("USDT", "BTC", Decimal("100"))

        assert quote.outcome == ConversionOutcome.INVERSE
        assert quote.rate == Decimal("0.00002000")
        assert quote.converted_amount == Decimal("0.00200000")
        symbols = [c.kwargs["params"]["symbol"] for c in session.get.call_args_list]
        assert symbols == ["USDTBTC", "BTCUSDT"]

    def test_rounds_half_up_to_eight_places(self, service, session):
        session.get.side_effect = prices_by_symbol({"ETHBTC": "3"})

        quote = service.convert("BTC", "ETH", Decimal("1"))

        assert quote.rate == Decimal("0.33333333")
        assert quote.converted_amount == Decimal("0.33333333")

    def test_no_pair(self, service, session):
        session.get.side_effect = prices_by_symbol({})

        quote = service.convert("FOO", "BAR", Decimal("1"))

        assert quote.outcome == ConversionOutcome.UNAVAILABLE
        assert quote.rate is None
        assert quote.converted_amount is None
        assert not quote.is_available

    def test_zero_inverse_price(self, service, session):
        session.get.side_effect = prices_by_symbol({"BTCFOO": "0"})

        quote = service.convert("FOO", "BTC", Decimal("1"))

        assert quote.outcome == ConversionOutcome.UNAVAILABLE

    def test_same_asset_is_unavailable(self, service, session):
        session.get.side_effect = prices_by_symbol({})

        assert service.convert("BTC", "BTC", Decimal("1")).outcome == (
            ConversionOutcome.UNAVAILABLE
        )

    def test_outage_propagates(self, service, session):
        session.get.side_effect = requests.Timeout("slow")

        with pytest.raises(MarketDataUnavailableError):
            service.convert("BTC", "USDT", Decimal("1"))
