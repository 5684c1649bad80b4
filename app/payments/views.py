"""
DRF views for wallet top-ups.

Endpoints:
    POST /api/v1/payments/create-session/ - Start a top-up
    GET /api/v1/payments/topup/<uuid>/ - Top-up status
    GET /api/v1/payments/user/<user_id>/ - Top-up history

The Stripe webhook endpoint lives in payments.webhooks.views.

Related files:
    - services/topup_orchestrator.py: TopupOrchestrator
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Security:
    Callers are identified by the user_id they send. Authentication is
    expected to be enforced in front of this service.
"""

from __future__ import annotations

import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.services import ServiceResult

from payments.serializers import (
    CreateTopupSessionSerializer,
    TopupHistoryQuerySerializer,
    TopupSerializer,
    TopupSessionSerializer,
)
from payments.services import (
    InitiateTopupParams,
    TopupErrorCode,
    TopupOrchestrator,
    build_topup_orchestrator,
)

logger = logging.getLogger(__name__)


# HTTP status for each failed-result error code
ERROR_STATUS = {
    TopupErrorCode.INVALID_PARAMETERS.value: status.HTTP_400_BAD_REQUEST,
    TopupErrorCode.VERIFICATION_FAILED.value: status.HTTP_400_BAD_REQUEST,
    TopupErrorCode.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    TopupErrorCode.INVALID_STATE.value: status.HTTP_409_CONFLICT,
    TopupErrorCode.GATEWAY_ERROR.value: status.HTTP_502_BAD_GATEWAY,
}


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status for its error code."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def invalid_parameters_response(errors) -> Response:
    """Render serializer errors in the failure envelope."""
    return Response(
        {
            "success": False,
            "error": "Invalid parameters",
            "error_code": TopupErrorCode.INVALID_PARAMETERS.value,
            "errors": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class TopupOrchestratorMixin:
    """Give a view a TopupOrchestrator built from settings."""

    def get_orchestrator(self) -> TopupOrchestrator:
        return build_topup_orchestrator()


class CreateTopupSessionView(TopupOrchestratorMixin, APIView):
    """
    Start a wallet top-up.

    POST /api/v1/payments/create-session/

    Request:
        {"user_id": 1, "wallet_id": "<uuid>", "amount": "50.00", "currency": "usd"}

    Response:
        201 Created: {"success": true, "data": {"topup_id", "session_id", "session_url"}}
        400 Bad Request: Invalid parameters
        404 Not Found: Wallet missing or not owned by user_id
        502 Bad Gateway: Stripe failed; no top-up was recorded
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_topup_session",
        summary="Start a wallet top-up",
        request=CreateTopupSessionSerializer,
        responses={
            201: OpenApiResponse(
                response=TopupSessionSerializer,
                description="Checkout session created",
            ),
            400: OpenApiResponse(description="Invalid parameters"),
            404: OpenApiResponse(description="Wallet not found"),
            502: OpenApiResponse(description="Payment provider error"),
        },
        tags=["Payments - Top-Ups"],
    )
    def post(self, request):
        serializer = CreateTopupSessionSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_parameters_response(serializer.errors)

        result = self.get_orchestrator().initiate(
            InitiateTopupParams(**serializer.validated_data)
        )
        if not result.success:
            return failure_response(result)

        return Response(
            result.to_response(TopupSessionSerializer(result.data).data),
            status=status.HTTP_201_CREATED,
        )


class TopupStatusView(TopupOrchestratorMixin, APIView):
    """
    Get a top-up by id.

    GET /api/v1/payments/topup/<uuid>/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_topup_status",
        summary="Get top-up status",
        responses={
            200: OpenApiResponse(response=TopupSerializer),
            404: OpenApiResponse(description="Top-up not found"),
        },
        tags=["Payments - Top-Ups"],
    )
    def get(self, request, topup_id):
        result = self.get_orchestrator().status(topup_id)
        if not result.success:
            return failure_response(result)
        return Response(result.to_response(TopupSerializer(result.data).data))


class TopupHistoryView(TopupOrchestratorMixin, APIView):
    """
    List a user's top-ups, newest first.

    GET /api/v1/payments/user/<user_id>/?limit=10&offset=0

    limit is clamped to 1..100.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="list_user_topups",
        summary="List a user's top-ups",
        parameters=[
            OpenApiParameter("limit", OpenApiTypes.INT, description="Page size (1-100)"),
            OpenApiParameter("offset", OpenApiTypes.INT, description="Rows to skip"),
        ],
        responses={200: OpenApiResponse(response=TopupSerializer(many=True))},
        tags=["Payments - Top-Ups"],
    )
    def get(self, request, user_id):
        query = TopupHistoryQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return invalid_parameters_response(query.errors)

        result = self.get_orchestrator().history(user_id, **query.validated_data)
        return Response(result.to_response(TopupSerializer(result.data, many=True).data))
