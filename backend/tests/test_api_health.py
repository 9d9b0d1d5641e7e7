"""
Integration tests: health, metrics and app-level middleware.
"""

from unittest.mock import patch

from tripboard.core.errors import StorageError


class TestHealth:

    def test_simple_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_healthz_reports_checks(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["trip_count"] == 0
        assert data["checks"]["storage"]["status"] == "healthy"

    def test_storage_failure_degrades(self, client):
        with patch("tripboard.api.health.get_storage") as get_storage:
            get_storage.return_value.bucket = "trip-photos"
            get_storage.return_value.upload.side_effect = StorageError("read-only filesystem")

            response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["storage"]["status"] == "unhealthy"


class TestMiddleware:

    def test_request_id_and_security_headers(self, client):
        response = client.get("/")

        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_metrics_snapshot(self, client):
        data = client.get("/metrics").json()
        assert data["operations"] == {}
        assert "rate_limiter" in data
