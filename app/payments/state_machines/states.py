"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Topup States:
    pending → processing → completed
    pending/processing → failed

WebhookEvent States:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class TopupStatus(models.TextChoices):
    """
    States for the Topup model lifecycle.

    Terminal states: COMPLETED, FAILED

    State Flow:
        PENDING → PROCESSING → COMPLETED

    Failure Flow:
        PENDING → FAILED (checkout session could not be used)
        PROCESSING → FAILED (session expired or async payment failed)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"

    @classmethod
    def terminal(cls) -> list[str]:
        """States a Topup never leaves."""
        return [cls.COMPLETED, cls.FAILED]


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    Used to track the processing state of incoming Stripe webhooks.
    FAILED events are picked up by the retry task until they run out
    of attempts.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
