"""
URL configuration for the market app.

All routes are prefixed with /api/v1/crypto/ when included in the main URLconf.
"""

from django.urls import path

from market.views import ConvertView, ExchangeInfoView, PricesView, PriceView, TickerView

app_name = "market"

urlpatterns = [
    path("price/", PriceView.as_view(), name="price"),
    path("prices/", PricesView.as_view(), name="prices"),
    path("ticker/", TickerView.as_view(), name="ticker"),
    path("exchange-info/", ExchangeInfoView.as_view(), name="exchange_info"),
    path("convert/", ConvertView.as_view(), name="convert"),
]
