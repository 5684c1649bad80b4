"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules,
      missing records, provider rejections)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class TopupOrchestrator(BaseService):
        def status(self, topup_id) -> ServiceResult[Topup]:
            topup = Topup.objects.filter(id=topup_id).first()
            if topup is None:
                return ServiceResult.failure("Topup not found", "NOT_FOUND")
            return ServiceResult.success(topup)

    # In view
    result = orchestrator.status(topup_id)
    if result.success:
        return Response(result.to_response(TopupSerializer(result.data).data))
    return Response(result.to_response(), status=404)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Callers branch on ``success`` and, for failures, on ``error_code``.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        return ServiceResult.success(topup)
        return ServiceResult.failure("Topup not found", "NOT_FOUND")

        result = orchestrator.complete(topup_id, "pi_123")
        if not result:
            logger.info(f"Completion skipped: {result.error_code}")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self, data: Any = None) -> dict[str, Any]:
        """
        Convert to the API envelope.

        Args:
            data: Optional serialized payload to use instead of self.data
                (views pass serializer output here)

        Returns:
            {"success": True, "data": ...} or
            {"success": False, "error": ..., "error_code": ..., "errors": ...}
        """
        if self.success:
            return {"success": True, "data": self.data if data is None else data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context (same as result.success)."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Services hold references to their collaborators (gateways,
          other services) and are constructed explicitly by callers
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation raises, all
        changes are rolled back and the exception propagates.

        Example:
            with cls.atomic():
                topup = Topup.objects.create(...)
                session = gateway.create_checkout_session(...)
                # If the gateway raises, the Topup insert is rolled back
        """
        with transaction.atomic():
            yield

