"""
Pytest fixtures for payment tests.

Fixtures provide top-ups in each state and a TopupOrchestrator wired to a
real StripeGateway whose Checkout Session call is patched.

Usage:
    def test_complete(orchestrator, processing_topup):
        result = orchestrator.complete(processing_topup.id, "pi_123")
        assert result.success
"""

from unittest.mock import MagicMock, patch

import pytest

from payments.adapters import StripeGateway
from payments.services import TopupOrchestrator
from payments.tests.factories import TopupFactory, UserFactory, WalletFactory
from wallets.services import WalletService

WEBHOOK_SECRET = "whsec_orchestrator_test"


# =============================================================================
# User and Wallet Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def wallet(db, user):
    """An empty USD wallet for the test user."""
    return WalletFactory(user=user)


# =============================================================================
# Top-Up Fixtures
# =============================================================================


@pytest.fixture
def pending_topup(db, wallet):
    return TopupFactory(wallet=wallet)


@pytest.fixture
def processing_topup(db, wallet):
    return TopupFactory(wallet=wallet, processing=True)


@pytest.fixture
def completed_topup(db, wallet):
    return TopupFactory(wallet=wallet, completed=True)


@pytest.fixture
def failed_topup(db, wallet):
    return TopupFactory(wallet=wallet, failed=True)


# =============================================================================
# Orchestrator Fixtures
# =============================================================================


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def gateway(webhook_secret):
    return StripeGateway(api_key="sk_test_orchestrator", webhook_secret=webhook_secret)


@pytest.fixture
def orchestrator(gateway):
    return TopupOrchestrator(
        gateway=gateway,
        wallet_service=WalletService(),
        success_url="https://example.com/success",
        cancel_url="https://example.com/cancel",
        supported_currencies=["usd", "eur", "gbp"],
    )


@pytest.fixture
def mock_session_create():
    """Patch the Checkout Session service with a successful response."""
    with patch("stripe.checkout.SessionService.create") as mock:
        mock.return_value = MagicMock(
            id="cs_test_abc",
            url="https://checkout.stripe.com/c/pay/cs_test_abc",
        )
        yield mock
