"""
WSGI entry point for the wallet top-up service.

Use this with a synchronous server such as Gunicorn. None of the endpoints
need async views, so WSGI and ASGI deployments behave the same.

Example:
    gunicorn config.wsgi:application --workers 4
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
