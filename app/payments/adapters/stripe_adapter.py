"""
Stripe API adapter for wallet top-ups.

This module provides the StripeGateway class which encapsulates all
Stripe API interactions needed by top-ups: creating Checkout Sessions
and verifying webhook deliveries. All Stripe calls go through this
adapter to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Configurable timeout and network retries on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency keys for safe retries

Configuration (passed in by build_stripe_gateway() from settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Max network retry attempts (default: 3)

Usage:
    from payments.adapters import build_stripe_gateway, CreateCheckoutSessionParams

    gateway = build_stripe_gateway()
    session = gateway.create_checkout_session(
        CreateCheckoutSessionParams(
            correlation_id=str(topup.id),
            amount=Decimal("50.00"),
            currency="usd",
            success_url="https://example.com/ok",
            cancel_url="https://example.com/cancel",
            idempotency_key=IdempotencyKeyGenerator.generate("checkout", topup.id),
        )
    )
    session.url  # redirect the customer here

    event = gateway.verify_and_parse_event(request.body, signature)
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    GatewayAuthenticationError,
    GatewayInvalidRequestError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    PaymentGatewayError,
    WebhookVerificationError,
)

# Currencies whose smallest unit is the major unit (no cents)
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
        "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
    }
)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """
    Convert a major-unit Decimal amount to Stripe's integer minor units.

    Example:
        to_minor_units(Decimal("50.00"), "usd")  # 5000
        to_minor_units(Decimal("500"), "jpy")  # 500
    """
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a Stripe Checkout Session.

    Attributes:
        correlation_id: Our Topup id, stored as metadata.topup_id and
            client_reference_id so the webhook can find the Topup
        amount: Amount in the major currency unit (Decimal)
        currency: ISO 4217 currency code (lowercase)
        success_url: Where Stripe redirects after payment
        cancel_url: Where Stripe redirects if the customer gives up
        idempotency_key: Unique key for idempotent creation
        product_name: Line item name shown on the checkout page
        metadata: Extra key-value pairs (user_id, wallet_id, ...)
    """

    correlation_id: str
    amount: Decimal
    currency: str
    success_url: str
    cancel_url: str
    idempotency_key: str
    product_name: str = "Wallet Top-Up"
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class CheckoutSessionResult:
    """
    Result from Checkout Session creation.

    Attributes:
        id: Checkout Session ID (cs_xxx)
        url: Hosted checkout page URL to redirect the customer to
    """

    id: str
    url: str


@dataclass
class GatewayEvent:
    """
    A verified webhook event.

    Attributes:
        id: Stripe Event ID (evt_xxx)
        type: Event type (e.g., 'checkout.session.completed')
        correlation_id: metadata.topup_id of the event object, if present
        provider_ref: PaymentIntent ID of the event object, if present
        payload: The full verified event as a dict
    """

    id: str
    type: str
    correlation_id: str | None = None
    provider_ref: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GatewayEvent:
        """
        Build an event from a parsed Stripe event payload.

        Raises:
            WebhookVerificationError: If the id or type is missing
        """
        event_id = payload.get("id")
        event_type = payload.get("type")
        if not event_id or not event_type:
            raise WebhookVerificationError(
                "Webhook payload is missing event id or type",
            )

        data_object = (payload.get("data") or {}).get("object") or {}
        metadata = data_object.get("metadata") or {}

        return cls(
            id=event_id,
            type=event_type,
            correlation_id=metadata.get("topup_id"),
            provider_ref=data_object.get("payment_intent"),
            payload=payload,
        )


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    The same (operation, entity, attempt) always yields the same key, so a
    retried request is recognised by Stripe as the original one.

    Example:
        key = IdempotencyKeyGenerator.generate("checkout", topup.id)
        # "checkout:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Stripe Gateway
# =============================================================================


class StripeGateway:
    """
    Payment gateway backed by Stripe Checkout.

    Holds its own API key and webhook secret; nothing is read from
    settings at call time. Build one per request with
    build_stripe_gateway(), or construct directly in tests.

    Usage:
        gateway = StripeGateway(api_key="sk_test_...", webhook_secret="whsec_...")
        result = gateway.create_checkout_session(params)
        event = gateway.verify_and_parse_event(payload, signature)
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: int = 10,
        max_retries: int = 3,
        webhook_tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.max_retries = max_retries
        self.webhook_tolerance = webhook_tolerance
        # Own client and HTTP pool; stripe module globals stay untouched
        self.client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=max_retries,
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Checkout Sessions
    # =========================================================================

    def create_checkout_session(
        self,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a one-off payment Checkout Session.

        Args:
            params: Amount, currency, redirect URLs and correlation id

        Returns:
            CheckoutSessionResult with the session id and hosted page URL

        Raises:
            GatewayInvalidRequestError: Invalid parameters
            GatewayAuthenticationError: Bad API key
            GatewayRateLimitError: Rate limited
            GatewayUnavailableError: Stripe service unavailable
            GatewayTimeoutError: Request timed out
        """
        logger = self.get_logger()

        unit_amount = to_minor_units(params.amount, params.currency)
        log_context = {
            "operation": "create_checkout_session",
            "correlation_id": params.correlation_id,
            "unit_amount": unit_amount,
            "currency": params.currency,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = self.client.checkout.sessions.create(
                params={
                    "mode": "payment",
                    "payment_method_types": ["card"],
                    "line_items": [
                        {
                            "price_data": {
                                "currency": params.currency,
                                "product_data": {"name": params.product_name},
                                "unit_amount": unit_amount,
                            },
                            "quantity": 1,
                        }
                    ],
                    "client_reference_id": params.correlation_id,
                    "metadata": {**params.metadata, "topup_id": params.correlation_id},
                    "success_url": params.success_url,
                    "cancel_url": params.cancel_url,
                },
                options={"idempotency_key": params.idempotency_key},
            )
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "session_id": session.id,
                "duration_ms": duration_ms,
            },
        )

        return CheckoutSessionResult(id=session.id, url=session.url)

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def verify_and_parse_event(
        self,
        payload: bytes,
        signature: str | None,
    ) -> GatewayEvent:
        """
        Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body exactly as received
            signature: Stripe-Signature header value

        Returns:
            GatewayEvent with correlation id and payment reference extracted

        Raises:
            WebhookVerificationError: Missing/invalid signature or bad payload
        """
        logger = self.get_logger()

        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header")

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise WebhookVerificationError(
                "Webhook payload is not valid UTF-8",
            ) from e

        try:
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                self.webhook_secret,
                self.webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(
                "Stripe webhook signature rejected",
                extra={"error": str(e)},
            )
            raise WebhookVerificationError(
                "Invalid webhook signature",
                details={"reason": str(e)},
            ) from e

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise WebhookVerificationError("Webhook payload is not valid JSON") from e

        if not isinstance(data, dict):
            raise WebhookVerificationError("Webhook payload is not a JSON object")

        return GatewayEvent.from_payload(data)

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_stripe_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Raises:
            GatewayInvalidRequestError: Invalid request parameters
            GatewayAuthenticationError: Bad API key
            GatewayRateLimitError: Rate limited
            GatewayTimeoutError: Request timed out
            GatewayUnavailableError: API unavailable
            PaymentGatewayError: Anything else Stripe raised
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise GatewayInvalidRequestError(
                str(error.user_message or error),
                provider_code=error.code,
            )

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise GatewayAuthenticationError(
                "Stripe authentication failed",
                provider_code="authentication_error",
            )

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise GatewayRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                provider_code="rate_limit",
            )

        elif isinstance(error, stripe.APIConnectionError):
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            if "timed out" in str(error).lower():
                raise GatewayTimeoutError(
                    f"Stripe did not respond within {self.timeout}s. Please retry.",
                    provider_code="timeout",
                )
            raise GatewayUnavailableError(
                "Could not connect to Stripe. Please retry.",
                provider_code="api_connection_error",
            )

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise GatewayUnavailableError(
                "Stripe service error. Please retry.",
                provider_code="api_error",
            )

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise PaymentGatewayError(
                f"Unexpected Stripe error: {error}",
                provider_code=getattr(error, "code", None) or "unknown_error",
            )


def build_stripe_gateway() -> StripeGateway:
    """Build a StripeGateway from Django settings."""
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        timeout=settings.STRIPE_API_TIMEOUT_SECONDS,
        max_retries=settings.STRIPE_MAX_RETRIES,
    )
