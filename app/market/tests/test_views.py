"""
Tests for the market data API views.

build_price_service is patched to return a PriceService over an adapter
with a mocked requests session.
"""

from unittest.mock import patch

import pytest
import requests
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from market.adapters import BinanceAdapter
from market.services import PriceService
from market.tests.conftest import binance_response, prices_by_symbol


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture(autouse=True)
def price_service(adapter):
    service = PriceService(adapter=adapter)
    with patch("market.views.build_price_service", return_value=service):
        yield service


class TestPriceView:
    def test_price(self, api_client, session):
        session.get.return_value = binance_response({"symbol": "ETHUSDT", "price": "2300.5"})

        response = api_client.get(reverse("market:price"), {"symbol": "ethusdt"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["symbol"] == "ETHUSDT"
        assert data["price"] == "2300.50000000"
        assert session.get.call_args.kwargs["params"] == {"symbol": "ETHUSDT"}

    def test_defaults_to_btcusdt(self, api_client, session):
        session.get.return_value = binance_response({"symbol": "BTCUSDT", "price": "1"})

        api_client.get(reverse("market:price"))

        assert session.get.call_args.kwargs["params"] == {"symbol": "BTCUSDT"}

    def test_malformed_symbol(self, api_client, session):
        response = api_client.get(reverse("market:price"), {"symbol": "BTC-USDT"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_PARAMETERS"
        session.get.assert_not_called()

    def test_unknown_symbol(self, api_client, session):
        session.get.return_value = binance_response({}, status_code=400)

        response = api_client.get(reverse("market:price"), {"symbol": "NOPENOPE"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_SYMBOL"

    def test_binance_down(self, api_client, session):
        session.get.side_effect = requests.ConnectionError("down")

        response = api_client.get(reverse("market:price"))

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "MARKET_DATA_UNAVAILABLE"


class TestSessionLifecycle:
    def test_session_closed_after_request(self, api_client):
        with patch("market.adapters.binance_adapter.requests.Session") as session_cls:
            session = session_cls.return_value
            session.get.return_value = binance_response({"symbol": "BTCUSDT", "price": "1"})
            service = PriceService(adapter=BinanceAdapter())

            with patch("market.views.build_price_service", return_value=service):
                response = api_client.get(reverse("market:price"))

        assert response.status_code == status.HTTP_200_OK
        session.close.assert_called_once()

    def test_session_closed_when_binance_fails(self, api_client):
        with patch("market.adapters.binance_adapter.requests.Session") as session_cls:
            session = session_cls.return_value
            session.get.side_effect = requests.ConnectionError("down")
            service = PriceService(adapter=BinanceAdapter())

            with patch("market.views.build_price_service", return_value=service):
                response = api_client.get(reverse("market:price"))

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        session.close.assert_called_once()


class TestPricesView:
    def test_prices(self, api_client, session):
        session.get.return_value = binance_response(
            [{"symbol": "BTCUSDT", "price": "1"}, {"symbol": "ETHUSDT", "price": "2"}]
        )

        response = api_client.get(reverse("market:prices"), {"symbols": "btcusdt,ethusdt"})

        assert response.status_code == status.HTTP_200_OK
        assert [q["symbol"] for q in response.json()["data"]] == ["BTCUSDT", "ETHUSDT"]

    @pytest.mark.parametrize("symbols", ["", ",,", ",".join(["BTCUSDT"] * 101)])
    def test_invalid_list(self, api_client, session, symbols):
        response = api_client.get(reverse("market:prices"), {"symbols": symbols})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_PARAMETERS"


class TestTickerView:
    def test_ticker(self, api_client, session):
        session.get.return_value = binance_response(
            {
                "symbol": "BTCUSDT",
                "priceChange": "10",
                "priceChangePercent": "1.5",
                "lastPrice": "100",
                "highPrice": "110",
                "lowPrice": "90",
                "volume": "5",
                "quoteVolume": "500",
            }
        )

        response = api_client.get(reverse("market:ticker"), {"symbol": "BTCUSDT"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["price_change_percent"] == "1.5"


class TestExchangeInfoView:
    def test_pairs(self, api_client, session):
        session.get.return_value = binance_response(
            {
                "symbols": [
                    {
                        "symbol": "BTCUSDT",
                        "status": "TRADING",
                        "baseAsset": "BTC",
                        "quoteAsset": "USDT",
                    }
                ]
            }
        )

        response = api_client.get(reverse("market:exchange_info"))

        assert response.json() == {
            "success": True,
            "data": [
                {
                    "symbol": "BTCUSDT",
                    "base_asset": "BTC",
                    "quote_asset": "USDT",
                    "status": "TRADING",
                }
            ],
        }


class TestConvertView:
    def test_convert(self, api_client, session):
        session.get.side_effect = prices_by_symbol({"BTCUSDT": "50000"})

        response = api_client.post(
            reverse("market:convert"),
            {"from_symbol": "btc", "to_symbol": "usdt", "amount": "0.5"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {
            "from_asset": "BTC",
            "to_asset": "USDT",
            "amount": "0.50000000",
            "converted_amount": "25000.00000000",
            "rate": "50000.00000000",
            "outcome": "direct",
        }

    def test_no_trading_pair(self, api_client, session):
        session.get.side_effect = prices_by_symbol({})

        response = api_client.post(
            reverse("market:convert"),
            {"from_symbol": "FOO", "to_symbol": "BAR", "amount": "1"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["error_code"] == "INVALID_SYMBOL"
        assert body["error"] == "No trading pair for FOO/BAR"

    @pytest.mark.parametrize(
        "body",
        [
            {"from_symbol": "BTC", "to_symbol": "USDT", "amount": "0"},
            {"from_symbol": "BTC", "to_symbol": "USDT"},
            {"from_symbol": "B T C", "to_symbol": "USDT", "amount": "1"},
        ],
    )
    def test_invalid_body(self, api_client, session, body):
        response = api_client.post(reverse("market:convert"), body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_PARAMETERS"
        session.get.assert_not_called()
