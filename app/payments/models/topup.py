"""
Topup model for the wallet top-up lifecycle.

A Topup tracks one attempt to add money to a wallet through Stripe
Checkout, from the moment the customer asks for it until Stripe reports
the outcome through a webhook.

Usage:
    from payments.models import Topup
    from payments.state_machines import TopupStatus

    topup = Topup.objects.create(
        user=user,
        wallet=wallet,
        amount=Decimal("50.00"),
        currency="usd",
    )

    # State transitions using django-fsm
    topup.start_processing(session_id="cs_test_123")  # pending -> processing
    topup.save()

    topup.complete(payment_ref="pi_123")  # processing -> completed
    topup.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import TopupStatus


class PaymentProvider(models.TextChoices):
    """Payment providers a Topup can be paid through."""

    STRIPE = "stripe", "Stripe"


class Topup(UUIDPrimaryKeyMixin, BaseModel):
    """
    A request to add money to a wallet.

    The Topup id is generated before the insert and handed to Stripe as
    the checkout session's correlation id (metadata.topup_id), so the
    webhook can find the row again.

    State Flow:
        PENDING -> PROCESSING -> COMPLETED

    Failure Flow:
        PENDING/PROCESSING -> FAILED

    Fields:
        user: User who asked for the top-up
        wallet: Wallet to credit on completion
        amount: Positive amount in the major currency unit
        currency: ISO 4217 currency code (lowercase)
        status: Current FSM state
        payment_provider: Provider name ('stripe')
        provider_session_id: Stripe Checkout Session ID (cs_xxx)
        provider_payment_id: Stripe PaymentIntent ID (pi_xxx), set on completion
        completed_at / failed_at: Terminal transition times
        failure_reason: Why the Topup failed (usually the Stripe event type)

    Note:
        COMPLETED and FAILED are terminal. The FSM refuses any transition
        out of them, so a redelivered webhook can never complete or fail
        a Topup twice.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="topups",
        help_text="User who requested the top-up",
    )

    wallet = models.ForeignKey(
        "wallets.Wallet",
        on_delete=models.PROTECT,
        related_name="topups",
        help_text="Wallet credited when the top-up completes",
    )

    # ==========================================================================
    # Amount & Currency
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        help_text="Top-up amount in the major currency unit",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=TopupStatus.PENDING,
        choices=TopupStatus.choices,
        db_index=True,
        help_text="Current state of the top-up (managed by FSM)",
    )

    # ==========================================================================
    # Provider References
    # ==========================================================================

    payment_provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
        default=PaymentProvider.STRIPE,
    )

    provider_session_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Checkout Session ID (cs_xxx)",
    )

    provider_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Stripe PaymentIntent ID (pi_xxx)",
    )

    # ==========================================================================
    # Transition Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True, default="")

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta(BaseModel.Meta):
        verbose_name = "Top-Up"
        verbose_name_plural = "Top-Ups"
        indexes = [
            models.Index(fields=["user", "created_at"], name="payments_to_user_id_6b1c2e_idx"),
            models.Index(fields=["status", "created_at"], name="payments_to_status_9f3a1d_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="topup_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Topup({self.id}, {self.status}, {self.amount} {self.currency.upper()})"

    @property
    def is_terminal(self) -> bool:
        """Check if the top-up has reached COMPLETED or FAILED."""
        return self.status in TopupStatus.terminal()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=TopupStatus.PENDING,
        target=TopupStatus.PROCESSING,
    )
    def start_processing(self, session_id: str):
        """
        Hand the top-up to Stripe Checkout.

        Transition: PENDING -> PROCESSING

        Args:
            session_id: The Checkout Session created for this top-up
        """
        self.provider_session_id = session_id

    @transition(
        field=status,
        source=TopupStatus.PROCESSING,
        target=TopupStatus.COMPLETED,
    )
    def complete(self, payment_ref: str | None = None):
        """
        Mark the top-up as paid.

        Transition: PROCESSING -> COMPLETED

        The wallet credit must be written in the same database
        transaction as this transition.

        Args:
            payment_ref: Stripe PaymentIntent ID for the payment
        """
        self.provider_payment_id = payment_ref
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[TopupStatus.PENDING, TopupStatus.PROCESSING],
        target=TopupStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark the top-up as failed.

        Transition: PENDING/PROCESSING -> FAILED

        Args:
            reason: Optional failure reason for debugging
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason
