"""
Celery tasks for payment processing.

This module provides periodic tasks for:
- Retrying webhook events whose processing failed

Scheduled via CELERY_BEAT_SCHEDULE in settings (every 10 minutes).

Usage:
    from payments.tasks import retry_failed_webhook_events

    retry_failed_webhook_events.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from payments.adapters import GatewayEvent
from payments.exceptions import WebhookVerificationError
from payments.models import WebhookEvent
from payments.services import build_topup_orchestrator
from payments.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)

# Events handled per run
RETRY_BATCH_SIZE = 100


@shared_task
def retry_failed_webhook_events() -> dict:
    """
    Periodic task to retry failed webhook events.

    Finds FAILED events below WEBHOOK_MAX_RETRIES attempts and reconciles
    them again from their stored payload. Each attempt increments
    retry_count; an event that keeps failing stops being picked up once
    it reaches the limit.

    Returns:
        Dict with counts of retried, recovered and still-failing events
    """
    failed_events = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=settings.WEBHOOK_MAX_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    orchestrator = build_topup_orchestrator()
    retried = recovered = still_failing = 0

    for record in failed_events:
        retried += 1
        try:
            event = GatewayEvent.from_payload(record.payload)
        except WebhookVerificationError as e:
            record.mark_failed(str(e))
            record.retry_count = settings.WEBHOOK_MAX_RETRIES
            record.save(update_fields=["status", "error_message", "retry_count", "updated_at"])
            still_failing += 1
            continue

        try:
            outcome = orchestrator.reconcile(event)
        except Exception as e:
            # reconcile() already stored the error on the event
            still_failing += 1
            logger.error(
                f"Webhook retry failed: {type(e).__name__}",
                extra={
                    "provider_event_id": record.provider_event_id,
                    "retry_count": record.retry_count + 1,
                },
            )
            continue

        recovered += 1
        logger.info(
            "Webhook retry succeeded",
            extra={
                "provider_event_id": record.provider_event_id,
                "action": outcome.action.value,
            },
        )

    logger.info(
        f"Retried {retried} failed webhooks",
        extra={
            "retried": retried,
            "recovered": recovered,
            "still_failing": still_failing,
        },
    )

    return {
        "retried": retried,
        "recovered": recovered,
        "still_failing": still_failing,
    }
