"""
Payment services.

Usage:
    from payments.services import build_topup_orchestrator, InitiateTopupParams
"""

from payments.services.topup_orchestrator import (
    InitiateTopupParams,
    ReconcileAction,
    ReconcileOutcome,
    TopupErrorCode,
    TopupOrchestrator,
    TopupSession,
    build_topup_orchestrator,
)

__all__ = [
    "InitiateTopupParams",
    "ReconcileAction",
    "ReconcileOutcome",
    "TopupErrorCode",
    "TopupOrchestrator",
    "TopupSession",
    "build_topup_orchestrator",
]
