"""
Django admin configuration for wallet models.

All wallet models are read-only in the admin. Balances only change through
WalletService, and transactions and ledger entries are append-only.
"""

from django.contrib import admin

from core.admin import ReadOnlyAdminMixin

from .models import LedgerEntry, Transaction, Wallet


@admin.register(Wallet)
class WalletAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for Wallet.

    Shows the stored balance next to the sum of ledger entries so the
    two can be compared at a glance.
    """

    list_display = [
        "id",
        "user",
        "balance",
        "currency",
        "ledger_balance_display",
        "created_at",
    ]
    list_filter = ["currency"]
    search_fields = ["id", "user__username", "user__email"]
    readonly_fields = ["id", "user", "balance", "currency", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def ledger_balance_display(self, obj: Wallet) -> str:
        """Sum of ledger entry amounts for the wallet."""
        return f"{obj.ledger_balance()} {obj.currency.upper()}"

    ledger_balance_display.short_description = "Ledger balance"


@admin.register(Transaction)
class TransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Admin configuration for Transaction."""

    list_display = [
        "id",
        "created_at",
        "wallet",
        "type",
        "amount",
        "currency",
        "status",
        "reference_id",
    ]
    list_filter = ["type", "status", "currency"]
    search_fields = ["id", "reference_id", "wallet__id"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for LedgerEntry.

    Ledger entries are immutable; corrections are made with new entries.
    """

    list_display = [
        "id",
        "created_at",
        "wallet",
        "entry_type",
        "amount",
        "balance_before",
        "balance_after",
        "topup",
    ]
    list_filter = ["entry_type", "created_at"]
    search_fields = ["id", "wallet__id", "topup__id", "description"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
