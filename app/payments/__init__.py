"""
Payments app for wallet top-ups through Stripe Checkout.

This app handles:
- Topup lifecycle (pending -> processing -> completed / failed)
- Stripe Checkout Session creation
- Webhook verification, storage and reconciliation
- Periodic retry of failed webhook events

Related apps:
    - wallets: Balance credit, Transaction and LedgerEntry on completion

Usage:
    from payments.services import build_topup_orchestrator, InitiateTopupParams

    orchestrator = build_topup_orchestrator()
    result = orchestrator.initiate(InitiateTopupParams(...))
"""
