from unittest.mock import patch

import pytest

from modules.core.models import OutboxEvent


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["cache"]["status"] == "up"

    def test_health_check_reports_outbox_backlog(self, client):
        OutboxEvent.objects.create(
            event_type="OrderCreated", aggregate_id="x", payload={}, topic="orders"
        )
        data = client.get("/health").json()
        assert data["services"]["outbox"]["pending_events"] == 1

    def test_health_check_is_public(self, client):
        assert client.get("/health").status_code == 200

    def test_cache_failure_returns_503(self, client):
        with patch("modules.core.views.cache") as cache:
            cache.get.return_value = None
            response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
