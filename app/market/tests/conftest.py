"""
Shared fixtures for market tests.

Binance is never called: the adapter gets a MagicMock session whose
get() returns canned responses built with binance_response().
"""

from unittest.mock import MagicMock

import pytest

from market.adapters import BinanceAdapter


def binance_response(payload=None, status_code=200):
    """Build a fake requests.Response carrying a JSON payload."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def prices_by_symbol(prices):
    """
    Session.get side effect answering price lookups from a dict.

    Symbols missing from the dict get Binance's 400 "Invalid symbol".
    """

    def _get(url, params=None, timeout=None):
        symbol = params["symbol"]
        if symbol in prices:
            return binance_response({"symbol": symbol, "price": prices[symbol]})
        return binance_response({"code": -1121, "msg": "Invalid symbol."}, 400)

    return _get


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def adapter(session):
    return BinanceAdapter(base_url="https://binance.test", timeout=3, session=session)
