"""
Tests for the Stripe adapter.

Tests cover:
- Minor unit conversion
- Checkout session params validation
- Idempotency key generation
- Checkout session creation and error translation
- Webhook signature verification and event parsing
"""

import time
import uuid
from decimal import Decimal

import pytest
import stripe
from django.test import override_settings

from payments.adapters import (
    CreateCheckoutSessionParams,
    GatewayEvent,
    IdempotencyKeyGenerator,
    StripeGateway,
    build_stripe_gateway,
    to_minor_units,
)
from payments.exceptions import (
    GatewayAuthenticationError,
    GatewayInvalidRequestError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayUnavailableError,
    PaymentGatewayError,
    WebhookVerificationError,
)
from payments.tests.webhook_payloads import (
    checkout_event,
    signed_delivery,
    stripe_signature,
)


# =============================================================================
# Minor Units
# =============================================================================


class TestToMinorUnits:
    @pytest.mark.parametrize(
        ("amount", "currency", "expected"),
        [
            ("50.00", "usd", 5000),
            ("0.01", "eur", 1),
            ("19.99", "GBP", 1999),
            ("500", "jpy", 500),
        ],
    )
    def test_conversion(self, amount, currency, expected):
        assert to_minor_units(Decimal(amount), currency) == expected


# =============================================================================
# CreateCheckoutSessionParams Tests
# =============================================================================


class TestCreateCheckoutSessionParams:
    """Tests for CreateCheckoutSessionParams validation."""

    def _params(self, **overrides):
        values = {
            "correlation_id": "topup-1",
            "amount": Decimal("10.00"),
            "currency": "usd",
            "success_url": "https://example.com/ok",
            "cancel_url": "https://example.com/cancel",
            "idempotency_key": "key-1",
        }
        values.update(overrides)
        return CreateCheckoutSessionParams(**values)

    def test_defaults(self):
        params = self._params()

        assert params.product_name == "Wallet Top-Up"
        assert params.metadata == {}

    def test_amount_must_be_positive(self):
        with pytest.raises(ValueError, match="amount must be positive"):
            self._params(amount=Decimal("0"))

    def test_idempotency_key_required(self):
        with pytest.raises(ValueError, match="idempotency_key is required"):
            self._params(idempotency_key="")

    def test_currency_required(self):
        with pytest.raises(ValueError, match="currency is required"):
            self._params(currency="")


# =============================================================================
# IdempotencyKeyGenerator Tests
# =============================================================================


class TestIdempotencyKeyGenerator:
    def test_generate_key_format(self):
        entity_id = uuid.uuid4()
        key = IdempotencyKeyGenerator.generate("checkout_session", entity_id)

        operation, entity, attempt, digest = key.split(":")
        assert operation == "checkout_session"
        assert entity == str(entity_id)
        assert attempt == "1"
        assert len(digest) == 8

    def test_same_inputs_produce_same_key(self):
        entity_id = uuid.uuid4()

        assert IdempotencyKeyGenerator.generate(
            "checkout_session", entity_id
        ) == IdempotencyKeyGenerator.generate("checkout_session", str(entity_id))

    def test_different_attempts_produce_different_keys(self):
        entity_id = uuid.uuid4()

        assert IdempotencyKeyGenerator.generate(
            "checkout_session", entity_id, attempt=1
        ) != IdempotencyKeyGenerator.generate("checkout_session", entity_id, attempt=2)


# =============================================================================
# Checkout Session Creation
# =============================================================================


class TestCreateCheckoutSession:
    def test_success(self, gateway, checkout_params, mock_session_create):
        """Should return session id and url and send the correlation id."""
        result = gateway.create_checkout_session(checkout_params)

        assert result.id == "cs_test_123"
        assert result.url == "https://checkout.stripe.com/c/pay/cs_test_123"

        kwargs = mock_session_create.call_args.kwargs
        assert kwargs["options"] == {"idempotency_key": checkout_params.idempotency_key}
        kwargs = kwargs["params"]
        assert kwargs["mode"] == "payment"
        assert kwargs["client_reference_id"] == checkout_params.correlation_id
        assert kwargs["metadata"] == {
            "user_id": "1",
            "topup_id": checkout_params.correlation_id,
        }
        price_data = kwargs["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 5000
        assert price_data["currency"] == "usd"
        assert price_data["product_data"] == {"name": "Wallet Top-Up"}

    def test_leaves_stripe_globals_alone(self, gateway, checkout_params, mock_session_create):
        http_client = stripe.default_http_client
        retries = stripe.max_network_retries

        gateway.create_checkout_session(checkout_params)

        assert stripe.default_http_client is http_client
        assert stripe.max_network_retries == retries

    def test_each_gateway_has_its_own_client(self):
        first = StripeGateway(api_key="sk_test_a", webhook_secret="whsec_a")
        second = StripeGateway(api_key="sk_test_b", webhook_secret="whsec_b")

        assert isinstance(first.client, stripe.StripeClient)
        assert first.client is not second.client

    def test_invalid_request_error(
        self, gateway, checkout_params, mock_session_create, invalid_request_error
    ):
        mock_session_create.side_effect = invalid_request_error

        with pytest.raises(GatewayInvalidRequestError) as exc_info:
            gateway.create_checkout_session(checkout_params)

        assert exc_info.value.provider_code == "amount_too_small"
        assert exc_info.value.is_retryable is False

    def test_authentication_error(self, gateway, checkout_params, mock_session_create):
        mock_session_create.side_effect = stripe.AuthenticationError("Invalid API Key")

        with pytest.raises(GatewayAuthenticationError):
            gateway.create_checkout_session(checkout_params)

    def test_rate_limit_error(self, gateway, checkout_params, mock_session_create):
        mock_session_create.side_effect = stripe.RateLimitError("Too many requests")

        with pytest.raises(GatewayRateLimitError) as exc_info:
            gateway.create_checkout_session(checkout_params)

        assert exc_info.value.is_retryable is True

    def test_connection_error(
        self, gateway, checkout_params, mock_session_create, api_connection_error
    ):
        mock_session_create.side_effect = api_connection_error

        with pytest.raises(GatewayUnavailableError):
            gateway.create_checkout_session(checkout_params)

    def test_timeout(self, gateway, checkout_params, mock_session_create, timeout_error):
        mock_session_create.side_effect = timeout_error

        with pytest.raises(GatewayTimeoutError):
            gateway.create_checkout_session(checkout_params)

    def test_api_error(self, gateway, checkout_params, mock_session_create):
        mock_session_create.side_effect = stripe.APIError("Internal server error")

        with pytest.raises(GatewayUnavailableError):
            gateway.create_checkout_session(checkout_params)

    def test_unknown_stripe_error(self, gateway, checkout_params, mock_session_create):
        mock_session_create.side_effect = stripe.StripeError("Something odd")

        with pytest.raises(PaymentGatewayError) as exc_info:
            gateway.create_checkout_session(checkout_params)

        assert type(exc_info.value) is PaymentGatewayError


# =============================================================================
# Webhook Verification
# =============================================================================


class TestVerifyAndParseEvent:
    def test_valid_signature(self, gateway, webhook_secret):
        topup_id = uuid.uuid4()
        payload = checkout_event("checkout.session.completed", topup_id, event_id="evt_1")
        body, signature = signed_delivery(payload, webhook_secret)

        event = gateway.verify_and_parse_event(body, signature)

        assert event.id == "evt_1"
        assert event.type == "checkout.session.completed"
        assert event.correlation_id == str(topup_id)
        assert event.provider_ref == "pi_123"
        assert event.payload == payload

    def test_missing_signature(self, gateway):
        with pytest.raises(WebhookVerificationError, match="Missing"):
            gateway.verify_and_parse_event(b"{}", None)

    def test_wrong_secret(self, gateway):
        body, signature = signed_delivery(
            checkout_event("checkout.session.completed", uuid.uuid4()), "whsec_other"
        )

        with pytest.raises(WebhookVerificationError) as exc_info:
            gateway.verify_and_parse_event(body, signature)

        assert exc_info.value.error_code == "VERIFICATION_FAILED"

    def test_tampered_body(self, gateway, webhook_secret):
        body, signature = signed_delivery(
            checkout_event("checkout.session.completed", uuid.uuid4()), webhook_secret
        )
        tampered = body.replace(b"pi_123", b"pi_999")

        with pytest.raises(WebhookVerificationError):
            gateway.verify_and_parse_event(tampered, signature)

    def test_expired_timestamp(self, gateway, webhook_secret):
        old = int(time.time()) - stripe.Webhook.DEFAULT_TOLERANCE - 60
        body, signature = signed_delivery(
            checkout_event("checkout.session.completed", uuid.uuid4()),
            webhook_secret,
            timestamp=old,
        )

        with pytest.raises(WebhookVerificationError):
            gateway.verify_and_parse_event(body, signature)

    def test_signed_non_json_body(self, gateway, webhook_secret):
        body = b"not json"

        with pytest.raises(WebhookVerificationError, match="not valid JSON"):
            gateway.verify_and_parse_event(body, stripe_signature(body, webhook_secret))

    def test_signed_json_array(self, gateway, webhook_secret):
        body = b"[1, 2]"

        with pytest.raises(WebhookVerificationError, match="not a JSON object"):
            gateway.verify_and_parse_event(body, stripe_signature(body, webhook_secret))

    def test_non_utf8_body(self, gateway):
        with pytest.raises(WebhookVerificationError, match="UTF-8"):
            gateway.verify_and_parse_event(b"\xff\xfe", "t=1,v1=abc")


class TestGatewayEventFromPayload:
    def test_without_metadata(self):
        event = GatewayEvent.from_payload({"id": "evt_1", "type": "charge.refunded"})

        assert event.correlation_id is None
        assert event.provider_ref is None

    def test_missing_id_rejected(self):
        with pytest.raises(WebhookVerificationError):
            GatewayEvent.from_payload({"type": "checkout.session.completed"})


# =============================================================================
# Factory
# =============================================================================


class TestBuildStripeGateway:
    @override_settings(
        STRIPE_SECRET_KEY="sk_test_settings",
        STRIPE_WEBHOOK_SECRET="whsec_settings",
        STRIPE_API_TIMEOUT_SECONDS=7,
        STRIPE_MAX_RETRIES=1,
    )
    def test_uses_settings(self):
        gateway = build_stripe_gateway()

        assert isinstance(gateway, StripeGateway)
        assert gateway.api_key == "sk_test_settings"
        assert gateway.webhook_secret == "whsec_settings"
        assert gateway.timeout == 7
        assert gateway.max_retries == 1
