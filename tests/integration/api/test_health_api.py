"""
Integration tests for health and readiness endpoints.
"""
import pytest
from django.urls import reverse


@pytest.mark.django_db
@pytest.mark.integration
class TestHealthAPI:
    """Integration tests for health endpoints."""

    def test_health(self, client):
        response = client.get(reverse("health"))

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_db(self, client):
        response = client.get(reverse("health-db"))

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_ready(self, client):
        response = client.get(reverse("ready"))

        assert response.status_code == 200

    def test_not_ready_without_billing_configuration(self, client, settings):
        settings.STRIPE_SECRET_KEY = ""

        response = client.get(reverse("ready"))

        assert response.status_code == 503
