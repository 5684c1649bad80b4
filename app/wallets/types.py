"""
Data types for wallet operations.

Types:
    CreditParams: Parameters for crediting a wallet
    CreditResult: What a credit wrote (transaction, ledger entry, balances)

Usage:
    from wallets.types import CreditParams

    params = CreditParams(
        wallet_id=wallet.id,
        amount=Decimal("50.00"),
        currency="usd",
        reference_id="pi_123",
        topup_id=topup.id,
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import LedgerEntry, Transaction


@dataclass
class CreditParams:
    """
    Parameters for crediting a wallet.

    Required Attributes:
        wallet_id: UUID of the wallet to credit
        amount: Positive Decimal amount in the wallet currency
        currency: ISO 4217 code; must match the wallet currency
        reference_id: External payment reference (e.g., 'pi_123')

    Optional Attributes:
        topup_id: Top-up that caused the credit
        transaction_description: Stored on the Transaction
        ledger_description: Stored on the LedgerEntry
    """

    wallet_id: uuid.UUID
    amount: Decimal
    currency: str
    reference_id: str

    topup_id: uuid.UUID | None = None
    transaction_description: str = "Stripe top-up"
    ledger_description: str = "Stripe checkout top-up"

    def __post_init__(self) -> None:
        """Normalize currency and coerce amount to Decimal."""
        self.amount = Decimal(str(self.amount))
        self.currency = self.currency.lower()


@dataclass(frozen=True)
class CreditResult:
    """
    Outcome of a wallet credit.

    Attributes:
        transaction: The Transaction row written
        ledger_entry: The LedgerEntry row written
        balance_before: Balance read under lock
        balance_after: Balance written
    """

    transaction: Transaction
    ledger_entry: LedgerEntry
    balance_before: Decimal
    balance_after: Decimal
