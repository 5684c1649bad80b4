"""
Webhook handling for Stripe events.

Webhooks are verified, stored idempotently in WebhookEvent and reconciled
by TopupOrchestrator.

Usage:
    from payments.webhooks.views import stripe_webhook
"""
