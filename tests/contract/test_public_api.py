"""
Contract tests for public and operational endpoints.

Tests verify the API contract for:
- POST /api/contact
- GET /health, /ready and /metrics
- Response headers added by middleware
"""

import pytest


CONTACT_URL = "/api/contact"


# ============================================================================
# CONTACT
# ============================================================================


class TestContactContract:
    """Contract tests for POST /api/contact."""

    def test_contact_message_stored(self, client, contact_repo, audit_repo):
        """Test a valid message is stored and acknowledged with 201."""
        response = client.post(CONTACT_URL, json={
            "name": "  Asha ",
            "email": "asha@example.com",
            "message": "When will the June exam window open?",
        })

        assert response.status_code == 201
        assert response.json() == {"message": "Message received"}
        assert contact_repo.messages[0]["name"] == "Asha"
        assert audit_repo.actions() == ["contact_message"]

    @pytest.mark.parametrize("body", [
        {"name": "Asha", "email": "asha@example.com", "message": "   "},
        {"name": "", "email": "asha@example.com", "message": "Hello"},
        {"name": "Asha", "email": "not-an-email", "message": "Hello"},
        {"name": "Asha", "email": "asha@example.com"},
    ])
    def test_contact_invalid(self, client, contact_repo, body):
        """Test blank or malformed messages are rejected."""
        response = client.post(CONTACT_URL, json=body)

        assert response.status_code == 422
        assert contact_repo.messages == []


# ============================================================================
# HEALTH AND METRICS
# ============================================================================


class TestOperationalContract:
    """Contract tests for health, readiness and metrics."""

    def test_health(self, client):
        """Test liveness reports healthy without touching the database."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "Invigilator Registration Portal"
        assert body["uptime_seconds"] >= 0

    def test_ready_without_database(self, client):
        """Test readiness is 503 while MongoDB is not connected."""
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_metrics(self, client, candidate, candidate_headers):
        """Test Prometheus output includes HTTP and portal metrics."""
        client.get("/api/auth/signup", headers=candidate_headers)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_security_and_correlation_headers(self, client):
        """Test security headers are set and the correlation ID is echoed."""
        response = client.get("/health", headers={"X-Correlation-ID": "corr-123"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Correlation-ID"] == "corr-123"

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
