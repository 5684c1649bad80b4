"""
Top-up orchestrator: the wallet top-up lifecycle.

This module provides the TopupOrchestrator class which coordinates a
top-up from start to finish:

    initiate  -> Topup PENDING, Stripe Checkout Session, Topup PROCESSING
    reconcile -> verified webhook routed to complete() or fail()
    complete  -> wallet credited, Transaction + LedgerEntry, Topup COMPLETED
    fail      -> Topup FAILED, wallet untouched

Every public operation returns a ServiceResult. Expected failures carry a
TopupErrorCode as error_code; nothing expected is raised.

Usage:
    from payments.services import build_topup_orchestrator, InitiateTopupParams

    orchestrator = build_topup_orchestrator()
    result = orchestrator.initiate(
        InitiateTopupParams(
            user_id=user.id,
            wallet_id=wallet.id,
            amount=Decimal("50.00"),
            currency="usd",
        )
    )
    if result.success:
        redirect_to(result.data.redirect_url)

Concurrency:
    complete() and fail() lock the Topup row (SELECT ... FOR UPDATE) and
    re-check its status under the lock. Two deliveries of the same
    completion event serialize on that lock; the second one sees
    COMPLETED and gets INVALID_STATE, so the wallet is credited once.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING

from django.conf import settings

from core.services import BaseService, ServiceResult

from payments.adapters import (
    CreateCheckoutSessionParams,
    GatewayEvent,
    IdempotencyKeyGenerator,
    build_stripe_gateway,
)
from payments.exceptions import (
    PaymentGatewayError,
    TopupNotReadyError,
    WebhookVerificationError,
)
from payments.models import Topup, WebhookEvent
from payments.state_machines import TopupStatus
from wallets.services import WalletService
from wallets.types import CreditParams

if TYPE_CHECKING:
    from payments.adapters import StripeGateway


# Upper bound for history() page size
MAX_HISTORY_LIMIT = 100


# =============================================================================
# Result Types
# =============================================================================


class TopupErrorCode(str, Enum):
    """
    Error codes carried by failed top-up ServiceResults.

    Values:
        NOT_FOUND: Topup or wallet does not exist
        INVALID_STATE: Topup is not in a state that allows the operation
        GATEWAY_ERROR: Stripe call failed
        VERIFICATION_FAILED: Webhook signature or payload rejected
        INVALID_PARAMETERS: Amount, currency or ids are unusable
    """

    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"


class ReconcileAction(str, Enum):
    """What reconcile() did with an event."""

    COMPLETED = "completed"
    FAILED = "failed"
    IGNORED = "ignored"
    REJECTED = "rejected"


@dataclass
class InitiateTopupParams:
    """
    Parameters for starting a top-up.

    Attributes:
        user_id: User paying for the top-up
        wallet_id: Wallet to credit; must belong to user_id
        amount: Positive amount with at most two decimal places
        currency: ISO 4217 code (case-insensitive)
    """

    user_id: int
    wallet_id: uuid.UUID
    amount: Decimal
    currency: str = "usd"

    def __post_init__(self) -> None:
        """Normalize currency to lowercase."""
        self.currency = (self.currency or "").lower()


@dataclass(frozen=True)
class TopupSession:
    """
    A started top-up.

    Attributes:
        topup_id: Id of the PROCESSING Topup
        session_id: Stripe Checkout Session ID
        redirect_url: Hosted checkout page for the customer
    """

    topup_id: uuid.UUID
    session_id: str
    redirect_url: str


@dataclass(frozen=True)
class ReconcileOutcome:
    """
    Result of reconciling one webhook event.

    Attributes:
        event_type: Stripe event type
        action: completed, failed, ignored or rejected
        topup_id: Correlation id from the event, if any
        detail: Why the event was ignored or rejected
    """

    event_type: str
    action: ReconcileAction
    topup_id: str | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, str | None]:
        return {
            "event": self.event_type,
            "action": self.action.value,
            "topup_id": self.topup_id,
            "detail": self.detail,
        }


def _failure(code: TopupErrorCode, message: str, **kwargs) -> ServiceResult:
    return ServiceResult.failure(message, error_code=code.value, **kwargs)


def _parse_uuid(value: uuid.UUID | str | None) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# =============================================================================
# Top-Up Orchestrator
# =============================================================================


class TopupOrchestrator(BaseService):
    """
    Coordinates the Topup state machine with Stripe and the wallet.

    Collaborators are passed in; build_topup_orchestrator() wires them
    from settings.

    Event Routing:
        checkout.session.completed -> complete()
        checkout.session.expired   -> fail()
        anything else              -> ignored

    Sessions are card-only, so a completed session is always paid and
    the async_payment_* events never occur.
    """

    COMPLETE_EVENTS = frozenset({"checkout.session.completed"})
    FAIL_EVENTS = frozenset({"checkout.session.expired"})

    def __init__(
        self,
        gateway: StripeGateway,
        wallet_service: WalletService,
        success_url: str,
        cancel_url: str,
        supported_currencies: list[str] | tuple[str, ...] = ("usd",),
        product_name: str = "Wallet Top-Up",
    ):
        self.gateway = gateway
        self.wallet_service = wallet_service
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.supported_currencies = {c.lower() for c in supported_currencies}
        self.product_name = product_name

    # =========================================================================
    # Initiation
    # =========================================================================

    def initiate(self, params: InitiateTopupParams) -> ServiceResult[TopupSession]:
        """
        Start a top-up and create its Stripe Checkout Session.

        The Topup insert, the Stripe call and the PROCESSING transition
        run in one transaction. If Stripe fails, the insert is rolled back
        and no Topup row remains.

        Returns:
            ServiceResult[TopupSession], or a failure with
            INVALID_PARAMETERS, NOT_FOUND or GATEWAY_ERROR
        """
        logger = self.get_logger()

        invalid = self._validate_initiate(params)
        if invalid is not None:
            return invalid

        wallet = self.wallet_service.get_user_wallet(params.wallet_id, params.user_id)
        if wallet is None:
            return _failure(
                TopupErrorCode.NOT_FOUND,
                "Wallet not found for this user",
            )
        if wallet.currency != params.currency:
            return _failure(
                TopupErrorCode.INVALID_PARAMETERS,
                f"Wallet currency is {wallet.currency}, not {params.currency}",
                errors={"currency": [f"Must match wallet currency '{wallet.currency}'"]},
            )

        try:
            with self.atomic():
                topup = Topup.objects.create(
                    user_id=params.user_id,
                    wallet=wallet,
                    amount=params.amount,
                    currency=params.currency,
                )
                session = self.gateway.create_checkout_session(
                    CreateCheckoutSessionParams(
                        correlation_id=str(topup.id),
                        amount=params.amount,
                        currency=params.currency,
                        success_url=self.success_url,
                        cancel_url=self.cancel_url,
                        idempotency_key=IdempotencyKeyGenerator.generate(
                            "checkout_session", topup.id
                        ),
                        product_name=self.product_name,
                        metadata={
                            "user_id": str(params.user_id),
                            "wallet_id": str(wallet.id),
                        },
                    )
                )
                topup.start_processing(session_id=session.id)
                topup.save()
        except PaymentGatewayError as e:
            logger.warning(
                "Top-up initiation failed at gateway",
                extra={
                    "user_id": str(params.user_id),
                    "wallet_id": str(params.wallet_id),
                    "error_code": e.error_code,
                    "retryable": e.is_retryable,
                },
            )
            return _failure(TopupErrorCode.GATEWAY_ERROR, e.message)

        logger.info(
            "Top-up initiated",
            extra={
                "topup_id": str(topup.id),
                "session_id": session.id,
                "amount": str(params.amount),
                "currency": params.currency,
            },
        )

        return ServiceResult.success(
            TopupSession(
                topup_id=topup.id,
                session_id=session.id,
                redirect_url=session.url,
            )
        )

    def _validate_initiate(self, params: InitiateTopupParams) -> ServiceResult | None:
        try:
            amount = Decimal(str(params.amount))
        except (InvalidOperation, ValueError):
            return _failure(
                TopupErrorCode.INVALID_PARAMETERS,
                "Amount is not a number",
                errors={"amount": ["Must be a decimal number"]},
            )
        if not amount.is_finite() or amount <= 0:
            return _failure(
                TopupErrorCode.INVALID_PARAMETERS,
                "Amount must be positive",
                errors={"amount": ["Must be greater than zero"]},
            )
        if amount.as_tuple().exponent < -2:
            return _failure(
                TopupErrorCode.INVALID_PARAMETERS,
                "Amount has more than two decimal places",
                errors={"amount": ["At most two decimal places"]},
            )
        if params.currency not in self.supported_currencies:
            supported = ", ".join(sorted(self.supported_currencies))
            return _failure(
                TopupErrorCode.INVALID_PARAMETERS,
                f"Unsupported currency '{params.currency}'",
                errors={"currency": [f"Supported: {supported}"]},
            )
        params.amount = amount
        return None

    # =========================================================================
    # Webhook Reconciliation
    # =========================================================================

    def verify_and_reconcile(
        self,
        payload: bytes,
        signature: str | None,
    ) -> ServiceResult[ReconcileOutcome]:
        """
        Verify a raw webhook delivery and reconcile it.

        A delivery that fails verification writes nothing.

        Returns:
            ServiceResult[ReconcileOutcome], or VERIFICATION_FAILED
        """
        try:
            event = self.gateway.verify_and_parse_event(payload, signature)
        except WebhookVerificationError as e:
            return _failure(TopupErrorCode.VERIFICATION_FAILED, e.message)

        return ServiceResult.success(self.reconcile(event))

    def reconcile(self, event: GatewayEvent) -> ReconcileOutcome:
        """
        Apply a verified event to its Topup.

        The event is recorded in WebhookEvent by Stripe event id. A
        redelivery of an event that was already processed is ignored.
        INVALID_STATE from complete()/fail() is reported in the outcome,
        not raised.

        Raises:
            TopupNotReadyError: The event names a Topup that does not
                exist. The stored event is left FAILED so a redelivery
                or the retry task can apply it once the Topup exists.
            Exception: Unexpected errors also mark the stored event
                FAILED and propagate.
        """
        logger = self.get_logger()

        record, _created = WebhookEvent.objects.get_or_create(
            provider_event_id=event.id,
            defaults={
                "event_type": event.type,
                "payload": event.payload,
                "topup_id": _parse_uuid(event.correlation_id),
            },
        )

        if record.is_processed:
            logger.info(
                "Webhook already processed, skipping",
                extra={"provider_event_id": event.id, "event_type": event.type},
            )
            return ReconcileOutcome(
                event_type=event.type,
                action=ReconcileAction.IGNORED,
                topup_id=event.correlation_id,
                detail="duplicate delivery",
            )

        record.mark_processing()
        record.save(update_fields=["status", "retry_count", "updated_at"])

        try:
            outcome = self._apply_event(event)
        except TopupNotReadyError as e:
            record.mark_failed(e.message)
            record.save(update_fields=["status", "error_message", "updated_at"])
            logger.warning(
                "Webhook names an unknown topup, left for redelivery",
                extra={
                    "provider_event_id": event.id,
                    "event_type": event.type,
                    "topup_id": e.topup_id,
                    "retry_count": record.retry_count,
                },
            )
            raise
        except Exception as e:
            record.mark_failed(f"{type(e).__name__}: {e}")
            record.save(update_fields=["status", "error_message", "updated_at"])
            logger.error(
                "Webhook processing failed",
                extra={
                    "provider_event_id": event.id,
                    "event_type": event.type,
                    "retry_count": record.retry_count,
                },
                exc_info=True,
            )
            raise

        record.mark_processed()
        record.save(
            update_fields=["status", "processed_at", "error_message", "updated_at"]
        )

        logger.info(
            "Webhook reconciled",
            extra={
                "provider_event_id": event.id,
                "event_type": event.type,
                "action": outcome.action.value,
                "topup_id": outcome.topup_id,
            },
        )
        return outcome

    def _apply_event(self, event: GatewayEvent) -> ReconcileOutcome:
        is_complete = event.type in self.COMPLETE_EVENTS
        is_fail = event.type in self.FAIL_EVENTS

        if not (is_complete or is_fail):
            return ReconcileOutcome(
                event_type=event.type,
                action=ReconcileAction.IGNORED,
                detail="unhandled event type",
            )

        if not event.correlation_id:
            return ReconcileOutcome(
                event_type=event.type,
                action=ReconcileAction.IGNORED,
                detail="no topup_id in metadata",
            )

        if _parse_uuid(event.correlation_id) is None:
            return ReconcileOutcome(
                event_type=event.type,
                action=ReconcileAction.IGNORED,
                topup_id=event.correlation_id,
                detail="malformed topup_id in metadata",
            )

        if is_complete:
            result = self.complete(event.correlation_id, event.provider_ref)
            success_action = ReconcileAction.COMPLETED
        else:
            result = self.fail(event.correlation_id, reason=event.type)
            success_action = ReconcileAction.FAILED

        if result.success:
            return ReconcileOutcome(
                event_type=event.type,
                action=success_action,
                topup_id=event.correlation_id,
            )

        if result.error_code == TopupErrorCode.NOT_FOUND.value:
            raise TopupNotReadyError(str(event.correlation_id), event.type)

        self.get_logger().warning(
            "Webhook event rejected",
            extra={
                "event_type": event.type,
                "topup_id": event.correlation_id,
                "error_code": result.error_code,
            },
        )
        return ReconcileOutcome(
            event_type=event.type,
            action=ReconcileAction.REJECTED,
            topup_id=event.correlation_id,
            detail=result.error_code or "",
        )

    # =========================================================================
    # Terminal Transitions
    # =========================================================================

    def complete(
        self,
        topup_id: uuid.UUID | str,
        provider_payment_ref: str | None,
    ) -> ServiceResult[Topup]:
        """
        Complete a PROCESSING top-up and credit its wallet.

        The Topup lock, the wallet credit (balance, Transaction,
        LedgerEntry) and the COMPLETED transition commit together.

        Returns:
            ServiceResult[Topup], or NOT_FOUND / INVALID_STATE
        """
        pk = _parse_uuid(topup_id)
        if pk is None:
            return _failure(TopupErrorCode.NOT_FOUND, f"Topup {topup_id} not found")

        with self.atomic():
            topup = (
                Topup.objects.select_for_update()
                .filter(id=pk, status=TopupStatus.PROCESSING)
                .first()
            )
            if topup is None:
                current = Topup.objects.filter(id=pk).values_list("status", flat=True).first()
                if current is None:
                    return _failure(TopupErrorCode.NOT_FOUND, f"Topup {pk} not found")
                return _failure(
                    TopupErrorCode.INVALID_STATE,
                    f"Topup {pk} is {current}, expected processing",
                )

            credit = self.wallet_service.credit(
                CreditParams(
                    wallet_id=topup.wallet_id,
                    amount=topup.amount,
                    currency=topup.currency,
                    reference_id=provider_payment_ref or "",
                    topup_id=topup.id,
                )
            )
            topup.complete(payment_ref=provider_payment_ref)
            topup.save()

        self.get_logger().info(
            "Top-up completed",
            extra={
                "topup_id": str(topup.id),
                "provider_payment_id": provider_payment_ref,
                "balance_after": str(credit.balance_after),
            },
        )
        return ServiceResult.success(topup)

    def fail(
        self,
        topup_id: uuid.UUID | str,
        reason: str | None = None,
    ) -> ServiceResult[Topup]:
        """
        Fail a PENDING or PROCESSING top-up. The wallet is not touched.

        Returns:
            ServiceResult[Topup], or NOT_FOUND / INVALID_STATE
        """
        pk = _parse_uuid(topup_id)
        if pk is None:
            return _failure(TopupErrorCode.NOT_FOUND, f"Topup {topup_id} not found")

        with self.atomic():
            topup = Topup.objects.select_for_update().filter(id=pk).first()
            if topup is None:
                return _failure(TopupErrorCode.NOT_FOUND, f"Topup {pk} not found")
            if topup.is_terminal:
                return _failure(
                    TopupErrorCode.INVALID_STATE,
                    f"Topup {pk} is already {topup.status}",
                )

            topup.fail(reason=reason)
            topup.save()

        self.get_logger().info(
            "Top-up failed",
            extra={"topup_id": str(topup.id), "reason": reason},
        )
        return ServiceResult.success(topup)

    # =========================================================================
    # Queries
    # =========================================================================

    def status(self, topup_id: uuid.UUID | str) -> ServiceResult[Topup]:
        """Look up a top-up by id."""
        pk = _parse_uuid(topup_id)
        topup = Topup.objects.filter(id=pk).first() if pk else None
        if topup is None:
            return _failure(TopupErrorCode.NOT_FOUND, f"Topup {topup_id} not found")
        return ServiceResult.success(topup)

    def history(
        self,
        user_id,
        limit: int = 10,
        offset: int = 0,
    ) -> ServiceResult[list[Topup]]:
        """
        A user's top-ups, newest first.

        limit is clamped to 1..MAX_HISTORY_LIMIT and offset to >= 0.
        """
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        offset = max(0, int(offset))
        topups = list(
            Topup.objects.filter(user_id=user_id).order_by("-created_at", "-id")[
                offset : offset + limit
            ]
        )
        return ServiceResult.success(topups)


def build_topup_orchestrator() -> TopupOrchestrator:
    """Build a TopupOrchestrator wired from Django settings."""
    return TopupOrchestrator(
        gateway=build_stripe_gateway(),
        wallet_service=WalletService(),
        success_url=settings.STRIPE_SUCCESS_URL,
        cancel_url=settings.STRIPE_CANCEL_URL,
        supported_currencies=settings.SUPPORTED_TOPUP_CURRENCIES,
        product_name=settings.TOPUP_PRODUCT_NAME,
    )
