import pytest

from wallets.tests.factories import UserFactory


@pytest.fixture
def user(db):
    return UserFactory()
