"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Topup and WebhookEvent model tests
- test_orchestrator.py: TopupOrchestrator tests
- test_webhooks.py: Webhook endpoint tests
- test_views.py: API endpoint tests
- test_tasks.py: Failed webhook retry task tests
- test_concurrency.py: Racing completions (PostgreSQL only)

Usage:
    pytest payments/tests/
    pytest payments/tests/test_orchestrator.py
"""
