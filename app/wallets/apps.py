"""
Wallets app configuration.

This app owns wallet balances and the ledger that explains them.
Balances are credited by the payments app when a top-up completes.
"""

from django.apps import AppConfig


class WalletsConfig(AppConfig):
    """Configuration for the wallets application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "wallets"
    verbose_name = "Wallets"
