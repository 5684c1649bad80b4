"""
Payment-specific exceptions.

Stripe SDK errors never leave payments.adapters; the adapter translates
them into the PaymentGatewayError family below so the orchestrator only
deals with domain exceptions.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentGatewayError - Base for all payment provider failures
    │   ├── GatewayInvalidRequestError - Invalid request params (permanent)
    │   ├── GatewayAuthenticationError - Bad or revoked API key (permanent)
    │   ├── GatewayRateLimitError - Rate limited (transient, retry)
    │   ├── GatewayUnavailableError - API unavailable (transient, retry)
    │   └── GatewayTimeoutError - Request timeout (transient, retry)
    ├── WebhookVerificationError - Webhook signature or payload rejected
    └── TopupNotReadyError - Webhook names a Topup that does not exist yet

Usage:
    from payments.exceptions import PaymentGatewayError

    try:
        session = gateway.create_checkout_session(params)
    except PaymentGatewayError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            gateway.verify_and_parse_event(payload, signature)
        except PaymentError as e:
            logger.error(f"Payment operation failed: {e}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class WebhookVerificationError(PaymentError):
    """
    Raised when a webhook cannot be trusted.

    Use for:
    - Missing Stripe-Signature header
    - Signature mismatch or expired timestamp
    - Payload that is not valid JSON

    Nothing may be written to the database for an unverified webhook.
    """

    default_error_code: str = "VERIFICATION_FAILED"


class TopupNotReadyError(PaymentError):
    """
    Raised when a webhook names a Topup that does not exist (yet).

    Stripe can deliver an event before the initiating transaction has
    committed. The stored event stays FAILED and unprocessed so that a
    redelivery or the retry task applies it later.
    """

    default_error_code: str = "TOPUP_NOT_READY"

    def __init__(self, topup_id: str, event_type: str):
        super().__init__(
            f"Topup {topup_id} referenced by {event_type} not found",
            details={"topup_id": topup_id, "event_type": event_type},
        )
        self.topup_id = topup_id


# =============================================================================
# Gateway Exceptions
# =============================================================================


class PaymentGatewayError(PaymentError, ExternalServiceError):
    """
    Base exception for payment provider failures.

    Attributes:
        provider_code: Provider's own error code, if any
        is_retryable: Whether the operation can be retried

    Example:
        try:
            gateway.create_checkout_session(params)
        except PaymentGatewayError as e:
            if e.is_retryable:
                schedule_retry(e)
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider_code:
            details["provider_code"] = provider_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider_code = provider_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class GatewayInvalidRequestError(PaymentGatewayError):
    """
    Invalid request parameters sent to the provider.

    The request itself is malformed and will never succeed with the
    same parameters (unsupported currency, amount below minimum, ...).
    This usually indicates a bug in our code, not a user error.
    """

    default_error_code: str = "GATEWAY_INVALID_REQUEST"


class GatewayAuthenticationError(PaymentGatewayError):
    """The provider rejected our API key."""

    default_error_code: str = "GATEWAY_AUTHENTICATION_FAILED"


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class GatewayRateLimitError(PaymentGatewayError):
    """Rate limited by the provider API."""

    default_error_code: str = "GATEWAY_RATE_LIMITED"
    is_retryable: bool = True


class GatewayUnavailableError(PaymentGatewayError):
    """
    Provider API is temporarily unavailable.

    Covers network connectivity issues and provider 5xx responses.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(PaymentGatewayError):
    """
    Provider API call timed out.

    IMPORTANT: The operation may have succeeded on the provider's side.
    Checkout sessions are created with an idempotency key derived from the
    Topup id, so a retry with the same key returns the original session.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"
    is_retryable: bool = True
