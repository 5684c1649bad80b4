"""
Tests for the health check endpoint.
"""

from unittest.mock import patch

from django.db import DatabaseError
from django.urls import reverse


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}

    def test_database_unreachable(self, client, db):
        with patch("core.views.connection.cursor", side_effect=DatabaseError("down")):
            response = client.get(reverse("health_check"))

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "database": "disconnected"}
