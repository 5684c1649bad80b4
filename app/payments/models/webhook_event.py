"""
WebhookEvent model for verified Stripe webhook deliveries.

Every webhook whose signature checks out is stored here, keyed by the
Stripe event id. The unique key makes redelivery detectable: an event
already PROCESSED is acknowledged without touching any Topup again.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        provider_event_id="evt_1234567890",
        defaults={
            "event_type": "checkout.session.completed",
            "payload": payload,
        },
    )
    if event.is_processed:
        return  # duplicate delivery

    event.mark_processing()
    event.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks Stripe webhook events for idempotent processing.

    Processing Flow:
        1. Webhook arrives, Stripe signature verified
        2. Insert/get WebhookEvent by provider_event_id
        3. If already PROCESSED -> acknowledge (duplicate)
        4. Mark PROCESSING, reconcile the event
        5. Mark PROCESSED, or FAILED on an unexpected error
        6. FAILED events are retried by payments.tasks

    Fields:
        provider_event_id: Stripe Event ID (evt_xxx), unique
        event_type: Stripe event type
        topup_id: Correlation id taken from the session metadata, if any
        payload: Verified JSON payload
        status: Processing status
        processed_at: When processing succeeded
        error_message: Last processing error
        retry_count: Number of processing attempts
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    provider_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'checkout.session.completed')",
    )

    topup_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Topup referenced by metadata.topup_id, if present",
    )

    payload = models.JSONField(
        help_text="Verified webhook payload from Stripe",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(null=True, blank=True)

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta(BaseModel.Meta):
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "retry_count"], name="payments_we_status_4e7b0c_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.provider_event_id}, {self.event_type})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def is_failed(self) -> bool:
        return self.status == WebhookEventStatus.FAILED

    @property
    def can_retry(self) -> bool:
        """Failed and still below WEBHOOK_MAX_RETRIES attempts."""
        return self.is_failed and self.retry_count < settings.WEBHOOK_MAX_RETRIES

    # ==========================================================================
    # Helper Methods
    # ==========================================================================
    # None of these save; the caller saves after calling.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
