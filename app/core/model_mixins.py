"""
Model mixins providing reusable functionality for Django models.

This module contains abstract mixin classes that can be combined with
BaseModel to add specific functionality. These are generic infrastructure
classes with no domain-specific logic.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    AppendOnlyMixin: Refuse updates and deletes after the first insert

Usage:
    from core.models import BaseModel
    from core.model_mixins import AppendOnlyMixin, UUIDPrimaryKeyMixin

    class AuditRecord(UUIDPrimaryKeyMixin, AppendOnlyMixin, BaseModel):
        message = models.TextField()

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Benefits:
        - Non-guessable IDs
        - Can be generated before database insert, which lets a record's
          ID be handed to an external provider as a correlation id
        - URLs don't reveal record count or order

    Fields:
        id: UUIDField as primary key (auto-generated)

    Usage:
        class Document(UUIDPrimaryKeyMixin, BaseModel):
            name = models.CharField(max_length=100)

        doc = Document.objects.create(name="Report")
        print(doc.id)  # UUID like: 550e8400-e29b-41d4-a716-446655440000
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class AppendOnlyMixin(models.Model):
    """
    Make model instances immutable once written.

    Instances can be inserted once. Any later save() on a persisted row,
    and any delete(), raises ImmutableRecordError. Corrections must be
    made by writing a new record.

    Usage:
        class LedgerEntry(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
            amount = models.DecimalField(max_digits=18, decimal_places=2)

        entry = LedgerEntry.objects.create(amount=Decimal("10.00"))
        entry.amount = Decimal("20.00")
        entry.save()  # raises ImmutableRecordError

    Note:
        QuerySet.update() and QuerySet.delete() bypass model methods.
        Services must not use them on append-only tables.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """Insert the record; refuse to update an existing one."""
        from core.exceptions import ImmutableRecordError

        if not self._state.adding:
            raise ImmutableRecordError(
                f"{self.__class__.__name__} records are append-only",
                details={"pk": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Refuse to delete the record."""
        from core.exceptions import ImmutableRecordError

        raise ImmutableRecordError(
            f"{self.__class__.__name__} records cannot be deleted",
            details={"pk": str(self.pk)},
        )
