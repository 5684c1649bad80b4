# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, ASGI/WSGI entry points and the Celery app.
#
# The Celery app is imported here so that @shared_task functions such as
# payments.tasks.retry_failed_webhook_events bind to it when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
