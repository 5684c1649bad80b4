"""
Payment adapters for external services.

All Stripe API calls go through StripeGateway to ensure consistent error
handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import build_stripe_gateway, CreateCheckoutSessionParams

    gateway = build_stripe_gateway()
    session = gateway.create_checkout_session(params)
"""

from payments.adapters.stripe_adapter import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    GatewayEvent,
    IdempotencyKeyGenerator,
    StripeGateway,
    build_stripe_gateway,
    to_minor_units,
)

__all__ = [
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "GatewayEvent",
    "IdempotencyKeyGenerator",
    "StripeGateway",
    "build_stripe_gateway",
    "to_minor_units",
]
