"""
Payments app configuration.

This app provides the wallet top-up flow:
- Topup state machine (django-fsm)
- Stripe Checkout integration
- Webhook verification, storage and reconciliation
"""

from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

REQUIRED_SETTINGS = ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self) -> None:
        """Refuse to start without Stripe credentials."""
        missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name, "")]
        if missing:
            raise ImproperlyConfigured(
                f"Payments require non-empty settings: {', '.join(missing)}"
            )
