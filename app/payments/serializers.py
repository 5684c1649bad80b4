"""
DRF serializers for the payments app.

This module provides serializers for:
- Top-up session creation requests and responses
- Top-up display (status and history)
- History query parameters

Related files:
    - models/topup.py: Topup
    - views.py: Top-up API views

Usage:
    serializer = CreateTopupSessionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from payments.models import Topup


class CreateTopupSessionSerializer(serializers.Serializer):
    """
    Request body for POST /api/v1/payments/create-session/.

    Fields:
        user_id: User paying for the top-up
        wallet_id: Wallet to credit (must belong to user_id)
        amount: Positive amount, two decimal places at most
        currency: ISO 4217 code (default: 'usd')
    """

    user_id = serializers.IntegerField(min_value=1)
    wallet_id = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=18,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )
    currency = serializers.CharField(max_length=3, default="usd")

    def validate_currency(self, value: str) -> str:
        """Lowercase and check against SUPPORTED_TOPUP_CURRENCIES."""
        value = value.lower()
        if value not in settings.SUPPORTED_TOPUP_CURRENCIES:
            supported = ", ".join(settings.SUPPORTED_TOPUP_CURRENCIES)
            raise serializers.ValidationError(f"Unsupported currency. Supported: {supported}")
        return value


class TopupSessionSerializer(serializers.Serializer):
    """Response payload for a started top-up."""

    topup_id = serializers.UUIDField()
    session_id = serializers.CharField()
    session_url = serializers.URLField(source="redirect_url")


class TopupSerializer(serializers.ModelSerializer):
    """
    Top-up for status and history responses.

    Amounts are rendered as strings to keep Decimal precision.
    """

    class Meta:
        model = Topup
        fields = [
            "id",
            "user_id",
            "wallet_id",
            "amount",
            "currency",
            "status",
            "payment_provider",
            "provider_session_id",
            "provider_payment_id",
            "created_at",
            "updated_at",
            "completed_at",
            "failed_at",
        ]
        read_only_fields = fields


class TopupHistoryQuerySerializer(serializers.Serializer):
    """Query parameters for GET /api/v1/payments/user/<user_id>/."""

    limit = serializers.IntegerField(required=False, default=10)
    offset = serializers.IntegerField(required=False, default=0, min_value=0)

