"""
DRF views for market data.

Endpoints:
    GET /api/v1/crypto/price/?symbol=BTCUSDT - Latest price
    GET /api/v1/crypto/prices/?symbols=BTCUSDT,ETHUSDT - Latest prices
    GET /api/v1/crypto/ticker/?symbol=BTCUSDT - 24 hour statistics
    GET /api/v1/crypto/exchange-info/ - Trading pairs
    POST /api/v1/crypto/convert/ - Convert an amount between assets

Error responses:
    400 INVALID_PARAMETERS: Bad query or body
    400 INVALID_SYMBOL: Binance does not list the symbol or pair
    502 MARKET_DATA_UNAVAILABLE: Binance could not be reached
"""

from __future__ import annotations

import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from market.exceptions import InvalidSymbolError, MarketDataError, MarketDataUnavailableError
from market.serializers import (
    ConversionQuoteSerializer,
    ConvertRequestSerializer,
    PriceQuoteSerializer,
    SymbolQuerySerializer,
    SymbolsQuerySerializer,
    Ticker24hSerializer,
    TradingPairSerializer,
)
from market.services import PriceService, build_price_service

logger = logging.getLogger(__name__)


def market_error_response(exc: MarketDataError) -> Response:
    if isinstance(exc, InvalidSymbolError):
        http_status = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, MarketDataUnavailableError):
        logger.error(
            "Market data unavailable",
            extra={"error_code": exc.error_code, "error": exc.message},
        )
        http_status = status.HTTP_502_BAD_GATEWAY
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response(exc.to_dict(), status=http_status)


def invalid_parameters_response(errors) -> Response:
    return Response(
        {
            "success": False,
            "error": "Invalid parameters",
            "error_code": "INVALID_PARAMETERS",
            "errors": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def success_response(data) -> Response:
    return Response({"success": True, "data": data})


class PriceServiceMixin:
    """
    Give a view a PriceService built from settings.

    Use it as a context manager so its HTTP session is closed when the
    request is done.
    """

    permission_classes = [AllowAny]

    def get_price_service(self) -> PriceService:
        return build_price_service()


SYMBOL_PARAMETER = OpenApiParameter(
    "symbol", OpenApiTypes.STR, description="Trading pair, e.g. BTCUSDT"
)


class PriceView(PriceServiceMixin, APIView):
    @extend_schema(
        operation_id="get_crypto_price",
        summary="Latest price for a symbol",
        parameters=[SYMBOL_PARAMETER],
        responses={
            200: OpenApiResponse(response=PriceQuoteSerializer),
            400: OpenApiResponse(description="Invalid symbol"),
            502: OpenApiResponse(description="Binance unavailable"),
        },
        tags=["Market Data"],
    )
    def get(self, request):
        query = SymbolQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return invalid_parameters_response(query.errors)

        try:
            with self.get_price_service() as service:
                quote = service.get_price(query.validated_data["symbol"])
        except MarketDataError as e:
            return market_error_response(e)
        return success_response(PriceQuoteSerializer(quote).data)


class PricesView(PriceServiceMixin, APIView):
    @extend_schema(
        operation_id="get_crypto_prices",
        summary="Latest prices for several symbols",
        parameters=[
            OpenApiParameter(
                "symbols",
                OpenApiTypes.STR,
                required=True,
                description="Comma-separated trading pairs",
            )
        ],
        responses={200: OpenApiResponse(response=PriceQuoteSerializer(many=True))},
        tags=["Market Data"],
    )
    def get(self, request):
        query = SymbolsQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return invalid_parameters_response(query.errors)

        try:
            with self.get_price_service() as service:
                quotes = service.get_prices(query.validated_data["symbols"])
        except MarketDataError as e:
            return market_error_response(e)
        return success_response(PriceQuoteSerializer(quotes, many=True).data)


class TickerView(PriceServiceMixin, APIView):
    @extend_schema(
        operation_id="get_crypto_ticker",
        summary="24 hour statistics for a symbol",
        parameters=[SYMBOL_PARAMETER],
        responses={200: OpenApiResponse(response=Ticker24hSerializer)},
        tags=["Market Data"],
    )
    def get(self, request):
        query = SymbolQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return invalid_parameters_response(query.errors)

        try:
            with self.get_price_service() as service:
                ticker = service.get_24hr_ticker(query.validated_data["symbol"])
        except MarketDataError as e:
            return market_error_response(e)
        return success_response(Ticker24hSerializer(ticker).data)


class ExchangeInfoView(PriceServiceMixin, APIView):
    @extend_schema(
        operation_id="get_crypto_exchange_info",
        summary="List trading pairs",
        responses={200: OpenApiResponse(response=TradingPairSerializer(many=True))},
        tags=["Market Data"],
    )
    def get(self, request):
        try:
            with self.get_price_service() as service:
                pairs = service.get_exchange_info()
        except MarketDataError as e:
            return market_error_response(e)
        return success_response(TradingPairSerializer(pairs, many=True).data)


class ConvertView(PriceServiceMixin, APIView):
    """
    Convert an amount between two assets.

    POST /api/v1/crypto/convert/

    Request:
        {"from_symbol": "BTC", "to_symbol": "USDT", "amount": "0.5"}

    The direct pair (BTCUSDT) is tried first, then the inverse pair
    (USDTBTC). The response's outcome field says which one was used.
    """

    @extend_schema(
        operation_id="convert_crypto_amount",
        summary="Convert an amount between assets",
        request=ConvertRequestSerializer,
        responses={
            200: OpenApiResponse(response=ConversionQuoteSerializer),
            400: OpenApiResponse(description="Invalid parameters or no trading pair"),
            502: OpenApiResponse(description="Binance unavailable"),
        },
        tags=["Market Data"],
    )
    def post(self, request):
        serializer = ConvertRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_parameters_response(serializer.errors)

        data = serializer.validated_data
        try:
            with self.get_price_service() as service:
                quote = service.convert(
                    data["from_symbol"], data["to_symbol"], data["amount"]
                )
        except MarketDataError as e:
            return market_error_response(e)

        if not quote.is_available:
            return Response(
                {
                    "success": False,
                    "error": f"No trading pair for {quote.from_asset}/{quote.to_asset}",
                    "error_code": InvalidSymbolError.default_error_code,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        return success_response(ConversionQuoteSerializer(quote).data)
