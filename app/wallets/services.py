"""
Wallet service layer.

WalletService is the only code path that changes Wallet.balance. A credit
locks the wallet row, reads the balance, writes the new balance and
records one Transaction and one LedgerEntry, all inside one database
transaction.

Usage:
    from wallets.services import WalletService
    from wallets.types import CreditParams

    result = WalletService().credit(CreditParams(
        wallet_id=wallet.id,
        amount=Decimal("50.00"),
        currency="usd",
        reference_id="pi_123",
    ))
    result.balance_after  # Decimal("50.00")

Concurrency:
    Two credits for the same wallet serialize on the wallet row lock
    (SELECT ... FOR UPDATE), so the second one reads the balance written
    by the first.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import transaction as db_transaction

from core.services import BaseService

from .exceptions import CurrencyMismatch, InvalidCreditAmount, WalletNotFound
from .models import (
    EntryType,
    LedgerEntry,
    Transaction,
    TransactionStatus,
    TransactionType,
    Wallet,
)
from .types import CreditParams, CreditResult


class WalletService(BaseService):
    """
    Service class for wallet balance operations.

    Instances hold no state; one is handed to the top-up orchestrator
    as a collaborator.
    """

    def get_user_wallet(self, wallet_id: uuid.UUID, user_id) -> Wallet | None:
        """Return the wallet if it exists and belongs to the user, else None."""
        return Wallet.objects.filter(id=wallet_id, user_id=user_id).first()

    def credit(self, params: CreditParams) -> CreditResult:
        """
        Credit a wallet and record the Transaction and LedgerEntry.

        Runs in its own atomic block; when called inside an outer
        transaction (the orchestrator's completion), it becomes a
        savepoint and commits or rolls back with the caller.

        Args:
            params: Wallet, amount, currency and payment reference

        Returns:
            CreditResult with the rows written and the balances

        Raises:
            InvalidCreditAmount: If amount <= 0
            WalletNotFound: If the wallet doesn't exist
            CurrencyMismatch: If currency differs from the wallet currency
        """
        logger = self.get_logger()

        if params.amount <= 0:
            raise InvalidCreditAmount(
                f"Credit amount must be positive, got {params.amount}",
                details={"amount": str(params.amount)},
            )

        with db_transaction.atomic():
            wallet = (
                Wallet.objects.select_for_update().filter(id=params.wallet_id).first()
            )
            if wallet is None:
                raise WalletNotFound(
                    f"Wallet {params.wallet_id} not found",
                    details={"wallet_id": str(params.wallet_id)},
                )

            if wallet.currency != params.currency:
                raise CurrencyMismatch(
                    f"Cannot credit {params.currency} to a {wallet.currency} wallet",
                    details={
                        "wallet_id": str(wallet.id),
                        "wallet_currency": wallet.currency,
                        "currency": params.currency,
                    },
                )

            balance_before: Decimal = wallet.balance
            balance_after: Decimal = balance_before + params.amount

            wallet.balance = balance_after
            wallet.save(update_fields=["balance", "updated_at"])

            txn = Transaction.objects.create(
                wallet=wallet,
                type=TransactionType.TOPUP,
                amount=params.amount,
                currency=params.currency,
                description=params.transaction_description,
                reference_id=params.reference_id,
                status=TransactionStatus.COMPLETED,
            )

            entry = LedgerEntry.objects.create(
                wallet=wallet,
                topup_id=params.topup_id,
                transaction=txn,
                entry_type=EntryType.CREDIT,
                amount=params.amount,
                balance_before=balance_before,
                balance_after=balance_after,
                description=params.ledger_description,
            )

        logger.info(
            "Wallet credited",
            extra={
                "wallet_id": str(wallet.id),
                "amount": str(params.amount),
                "currency": params.currency,
                "balance_before": str(balance_before),
                "balance_after": str(balance_after),
                "reference_id": params.reference_id,
            },
        )

        return CreditResult(
            transaction=txn,
            ledger_entry=entry,
            balance_before=balance_before,
            balance_after=balance_after,
        )
