"""Fixtures for wallet tests."""

import pytest

from wallets.services import WalletService
from wallets.tests.factories import UserFactory, WalletFactory


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def wallet(db, user):
    return WalletFactory(user=user)


@pytest.fixture
def wallet_service():
    return WalletService()
