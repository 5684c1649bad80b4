"""
Helpers for building signed Stripe webhook deliveries in tests.

Usage:
    payload = checkout_event("checkout.session.completed", topup.id)
    body, signature = signed_delivery(payload, "whsec_test_secret")
"""

import hashlib
import hmac
import json
import time
import uuid


def stripe_signature(body: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for body."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed_payload = f"{timestamp}.{body.decode('utf-8')}"
    digest = hmac.new(
        secret.encode("utf-8"), signed_payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


def signed_delivery(
    payload: dict, secret: str, timestamp: int | None = None
) -> tuple[bytes, str]:
    body = json.dumps(payload).encode("utf-8")
    return body, stripe_signature(body, secret, timestamp)


def checkout_event(
    event_type: str,
    topup_id=None,
    payment_intent: str | None = "pi_123",
    event_id: str | None = None,
) -> dict:
    """A minimal Stripe event whose object is a Checkout Session."""
    metadata = {} if topup_id is None else {"topup_id": str(topup_id)}
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": f"cs_test_{uuid.uuid4().hex[:16]}",
                "object": "checkout.session",
                "payment_intent": payment_intent,
                "metadata": metadata,
            }
        },
    }
