"""
Wallet models: balances, transactions and the ledger trail.

This module defines:
- Wallet: A user's balance in one currency
- Transaction: A completed money movement into a wallet
- LedgerEntry: Append-only record of each balance change with the
  balance before and after it

Every change to Wallet.balance is written together with exactly one
Transaction and one LedgerEntry, in the same database transaction, by
wallets.services.WalletService. Summing a wallet's ledger amounts
therefore always reproduces its balance.

Usage:
    from wallets.models import Wallet, LedgerEntry

    wallet = Wallet.objects.create(user=user, currency="usd")
    wallet.ledger_balance()  # Decimal("0.00")
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce

from core.model_mixins import AppendOnlyMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel

# Two decimal places, up to 10^16 in the major unit
MONEY_MAX_DIGITS = 18
MONEY_DECIMAL_PLACES = 2


class TransactionType(models.TextChoices):
    """
    Kinds of wallet transactions.

    Values:
        TOPUP: Money added to the wallet through a payment provider
    """

    TOPUP = "topup", "Top-Up"


class TransactionStatus(models.TextChoices):
    """
    Transaction states.

    Transactions are only written once the money movement has happened,
    so every row is COMPLETED.
    """

    COMPLETED = "completed", "Completed"


class EntryType(models.TextChoices):
    """
    Direction of a ledger entry.

    Values:
        CREDIT: Balance increases by amount
    """

    CREDIT = "credit", "Credit"


class Wallet(UUIDPrimaryKeyMixin, BaseModel):
    """
    A user's balance in a single currency.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        user: Owning user
        balance: Current balance, two decimal places
        currency: Lowercase ISO 4217 code (default: 'usd')
        created_at / updated_at: From BaseModel

    Constraints:
        - One wallet per (user, currency)
        - Balance is never negative

    Note:
        Only WalletService.credit writes balance, and only while holding
        a row lock on the wallet.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="wallets",
        help_text="User who owns this wallet",
    )
    balance = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
        help_text="Current balance in the wallet currency",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    class Meta(BaseModel.Meta):
        verbose_name = "Wallet"
        verbose_name_plural = "Wallets"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "currency"],
                name="wallet_unique_user_currency",
            ),
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="wallet_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Wallet {self.id} ({self.balance} {self.currency})"

    def ledger_balance(self) -> Decimal:
        """
        Sum of all ledger entry amounts for this wallet.

        Equals ``balance`` as long as balances are only changed through
        WalletService.
        """
        return self.ledger_entries.aggregate(
            total=Coalesce(
                Sum("amount"),
                Decimal("0.00"),
                output_field=models.DecimalField(
                    max_digits=MONEY_MAX_DIGITS,
                    decimal_places=MONEY_DECIMAL_PLACES,
                ),
            )
        )["total"]


class Transaction(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
    """
    A completed money movement into a wallet.

    Fields:
        id: UUID primary key
        wallet: Wallet that received the money
        type: Transaction kind (topup)
        amount: Positive amount in the wallet currency
        currency: ISO 4217 code
        description: Human-readable description
        reference_id: Provider payment reference (e.g., Stripe payment intent)
        status: Always 'completed'
        created_at: When the transaction was recorded

    Immutability:
        Rows are insert-only (AppendOnlyMixin).
    """

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
    )
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    currency = models.CharField(max_length=3)
    description = models.CharField(max_length=255, blank=True, default="")
    reference_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="External reference (provider payment id)",
    )
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.COMPLETED,
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="transaction_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.type} {self.amount} {self.currency} ({self.reference_id})"


class LedgerEntry(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
    """
    An immutable record of one balance change.

    Fields:
        id: UUID primary key
        wallet: Wallet whose balance changed
        topup: Top-up that caused the change (nullable)
        transaction: Transaction written alongside this entry
        entry_type: Direction (credit)
        amount: Positive amount of the change
        balance_before: Wallet balance read under lock before the change
        balance_after: Wallet balance written by the change
        description: Human-readable description
        created_at: When the entry was recorded

    Constraints:
        - amount > 0
        - balance_after = balance_before + amount for credits

    Immutability:
        save() on an existing row and delete() raise ImmutableRecordError.
    """

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    topup = models.ForeignKey(
        "payments.Topup",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    entry_type = models.CharField(
        max_length=20,
        choices=EntryType.choices,
    )
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    balance_before = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    balance_after = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    description = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Ledger entries"
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="ledger_entry_amount_positive",
            ),
            models.CheckConstraint(
                condition=~Q(entry_type=EntryType.CREDIT)
                | Q(balance_after=F("balance_before") + F("amount")),
                name="ledger_entry_credit_balances",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"{self.entry_type} {self.amount} "
            f"({self.balance_before} -> {self.balance_after})"
        )
