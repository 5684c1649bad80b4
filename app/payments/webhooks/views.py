"""
Webhook endpoint view for Stripe.

The view:
1. Verifies the webhook signature
2. Records the event by Stripe event id (idempotent)
3. Reconciles it against its Topup synchronously
4. Returns the outcome

Reconciliation is a couple of row locks and inserts, so it runs inside
the request. Events whose processing raises are stored as FAILED and
picked up again by a Stripe redelivery or by
payments.tasks.retry_failed_webhook_events. That includes events that
arrive before their Topup exists (503).

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhook/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.exceptions import TopupNotReadyError
from payments.services import build_topup_orchestrator

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive and reconcile a Stripe webhook event.

    Security:
    - Signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - WebhookEvent.provider_event_id is unique
    - Redelivered events that were processed return 200 without reprocessing
    - Topup row locks make concurrent deliveries safe

    Returns:
        JsonResponse with status:
        - 200: Event accepted ({"success": true, "data": {event, action, topup_id}})
        - 400: Missing or invalid signature, or unparseable payload
        - 503: Event names a Topup that does not exist yet (Stripe will redeliver)
        - 500: Unexpected processing error (Stripe will redeliver)

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    signature = request.headers.get("Stripe-Signature")

    try:
        result = build_topup_orchestrator().verify_and_reconcile(request.body, signature)
    except TopupNotReadyError as e:
        return JsonResponse(e.to_dict(), status=503)

    if not result.success:
        logger.warning(
            "Webhook verification failed",
            extra={"error": result.error, "has_signature": bool(signature)},
        )
        return JsonResponse(result.to_response(), status=400)

    return JsonResponse(result.to_response(result.data.to_dict()))
