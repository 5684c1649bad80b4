"""
Tests for payment models.

Tests field defaults, constraints and the Topup state machine.
"""

import uuid
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.test import override_settings
from django_fsm import TransitionNotAllowed
from freezegun import freeze_time

from payments.models import PaymentProvider, Topup, WebhookEvent
from payments.state_machines import TopupStatus, WebhookEventStatus
from payments.tests.factories import TopupFactory, WebhookEventFactory


# =============================================================================
# Topup Tests
# =============================================================================


class TestTopupModel:
    """Tests for Topup fields and constraints."""

    def test_defaults(self, db, wallet):
        topup = Topup.objects.create(
            user=wallet.user, wallet=wallet, amount=Decimal("50.00")
        )

        assert isinstance(topup.pk, uuid.UUID)
        assert topup.status == TopupStatus.PENDING
        assert topup.currency == "usd"
        assert topup.payment_provider == PaymentProvider.STRIPE
        assert topup.provider_session_id is None
        assert topup.is_terminal is False

    def test_amount_must_be_positive(self, db, wallet):
        with pytest.raises(IntegrityError), transaction.atomic():
            Topup.objects.create(user=wallet.user, wallet=wallet, amount=Decimal("0.00"))

    def test_session_id_unique(self, db, wallet):
        TopupFactory(wallet=wallet, provider_session_id="cs_dup")

        with pytest.raises(IntegrityError), transaction.atomic():
            TopupFactory(wallet=wallet, provider_session_id="cs_dup")


class TestTopupTransitions:
    """Tests for Topup django-fsm transitions."""

    def test_start_processing(self, pending_topup):
        pending_topup.start_processing(session_id="cs_test_1")
        pending_topup.save()

        pending_topup.refresh_from_db()
        assert pending_topup.status == TopupStatus.PROCESSING
        assert pending_topup.provider_session_id == "cs_test_1"

    @freeze_time("2026-01-15 12:00:00")
    def test_complete(self, processing_topup):
        processing_topup.complete(payment_ref="pi_123")
        processing_topup.save()

        processing_topup.refresh_from_db()
        assert processing_topup.status == TopupStatus.COMPLETED
        assert processing_topup.provider_payment_id == "pi_123"
        assert processing_topup.completed_at.isoformat() == "2026-01-15T12:00:00+00:00"
        assert processing_topup.is_terminal is True

    def test_cannot_complete_pending(self, pending_topup):
        with pytest.raises(TransitionNotAllowed):
            pending_topup.complete(payment_ref="pi_123")

    @pytest.mark.parametrize("fixture_name", ["pending_topup", "processing_topup"])
    def test_fail_from_open_states(self, request, fixture_name):
        topup = request.getfixturevalue(fixture_name)

        topup.fail(reason="checkout.session.expired")
        topup.save()

        topup.refresh_from_db()
        assert topup.status == TopupStatus.FAILED
        assert topup.failure_reason == "checkout.session.expired"
        assert topup.failed_at is not None

    def test_fail_without_reason(self, pending_topup):
        pending_topup.fail()

        assert pending_topup.failure_reason == ""

    @pytest.mark.parametrize("fixture_name", ["completed_topup", "failed_topup"])
    def test_terminal_states_are_final(self, request, fixture_name):
        topup = request.getfixturevalue(fixture_name)

        with pytest.raises(TransitionNotAllowed):
            topup.fail()
        with pytest.raises(TransitionNotAllowed):
            topup.complete(payment_ref="pi_again")
        with pytest.raises(TransitionNotAllowed):
            topup.start_processing(session_id="cs_again")


# =============================================================================
# WebhookEvent Tests
# =============================================================================


class TestWebhookEventModel:
    """Tests for WebhookEvent model."""

    def test_provider_event_id_unique(self, db):
        WebhookEventFactory(provider_event_id="evt_dup")

        with pytest.raises(IntegrityError), transaction.atomic():
            WebhookEventFactory(provider_event_id="evt_dup")

    def test_processing_lifecycle(self, db):
        event = WebhookEventFactory()

        event.mark_processing()
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

        event.mark_failed("boom")
        assert event.is_failed
        assert event.error_message == "boom"

        event.mark_processing()
        event.mark_processed()
        assert event.is_processed
        assert event.processed_at is not None
        assert event.error_message is None
        assert event.retry_count == 2

    @override_settings(WEBHOOK_MAX_RETRIES=3)
    def test_can_retry(self, db):
        assert WebhookEventFactory(
            status=WebhookEventStatus.FAILED, retry_count=2
        ).can_retry
        assert not WebhookEventFactory(
            status=WebhookEventStatus.FAILED, retry_count=3
        ).can_retry
        assert not WebhookEventFactory(
            status=WebhookEventStatus.PROCESSED, retry_count=1
        ).can_retry

    def test_str(self, db):
        event = WebhookEvent(provider_event_id="evt_1", event_type="checkout.session.expired")

        assert str(event) == "WebhookEvent(evt_1, checkout.session.expired)"
