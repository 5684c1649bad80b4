"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Gateway Fixtures
    - Checkout Fixtures
    - Error Fixtures
"""

import uuid
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import stripe

from payments.adapters import CreateCheckoutSessionParams, StripeGateway

WEBHOOK_SECRET = "whsec_adapter_test"


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def gateway(webhook_secret):
    """A StripeGateway with test credentials."""
    return StripeGateway(
        api_key="sk_test_adapter",
        webhook_secret=webhook_secret,
        timeout=5,
        max_retries=2,
    )


# =============================================================================
# Checkout Fixtures
# =============================================================================


@pytest.fixture
def checkout_params():
    """Valid params for a $50.00 checkout session."""
    return CreateCheckoutSessionParams(
        correlation_id=str(uuid.uuid4()),
        amount=Decimal("50.00"),
        currency="usd",
        success_url="https://example.com/success",
        cancel_url="https://example.com/cancel",
        idempotency_key=f"test-{uuid.uuid4()}",
        metadata={"user_id": "1"},
    )


@pytest.fixture
def mock_session_create():
    """Patch the Checkout Session service with a successful response."""
    with patch("stripe.checkout.SessionService.create") as mock:
        mock.return_value = MagicMock(
            id="cs_test_123",
            url="https://checkout.stripe.com/c/pay/cs_test_123",
        )
        yield mock


# =============================================================================
# Error Fixtures
# =============================================================================


@pytest.fixture
def invalid_request_error():
    return stripe.InvalidRequestError(
        "Amount must be at least 50 cents",
        param="line_items[0][price_data][unit_amount]",
        code="amount_too_small",
    )


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError("Network error communicating with Stripe")


@pytest.fixture
def timeout_error():
    return stripe.APIConnectionError("Request to Stripe timed out")
