"""
Django admin configuration for payment models.

Top-ups and webhook events are read-only in the admin: their state only
changes through TopupOrchestrator.
"""

from django.contrib import admin

from core.admin import ReadOnlyAdminMixin

from payments.models import Topup, WebhookEvent


@admin.register(Topup)
class TopupAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Admin configuration for Topup."""

    list_display = [
        "id",
        "created_at",
        "user",
        "wallet",
        "amount",
        "currency",
        "status",
        "provider_payment_id",
    ]
    list_filter = ["status", "currency", "payment_provider"]
    search_fields = ["id", "provider_session_id", "provider_payment_id", "wallet__id"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "user", "wallet", "amount", "currency", "status")}),
        (
            "Provider",
            {
                "fields": (
                    "payment_provider",
                    "provider_session_id",
                    "provider_payment_id",
                    "failure_reason",
                ),
            },
        ),
        (
            "Timestamps",
            {"fields": ("created_at", "updated_at", "completed_at", "failed_at")},
        ),
    )


@admin.register(WebhookEvent)
class WebhookEventAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Admin configuration for WebhookEvent."""

    list_display = [
        "provider_event_id",
        "event_type",
        "status",
        "retry_count",
        "topup_id",
        "created_at",
        "processed_at",
    ]
    list_filter = ["status", "event_type"]
    search_fields = ["provider_event_id", "topup_id"]
    ordering = ["-created_at"]
