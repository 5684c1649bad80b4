"""
Payment domain models.

This module contains all payment-related models:
- Topup: Wallet top-up lifecycle through Stripe Checkout
- WebhookEvent: Stripe webhook event tracking for idempotent processing
"""

from payments.models.topup import PaymentProvider, Topup
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "PaymentProvider",
    "Topup",
    "WebhookEvent",
]
