"""
Contract tests for rate limiting on the public authentication endpoints.

The suite runs with rate limiting switched off; these tests switch the shared
slowapi limiter on and verify signup and login answer 429 once the configured
limit is used up.
"""

import pytest

from portal.src.rate_limit import AUTH_RATE_LIMIT, limiter


SIGNUP_URL = "/api/auth/signup"
LOGIN_URL = "/api/auth/login"

# "10/minute" -> 10
ALLOWED = int(AUTH_RATE_LIMIT.split("/")[0].split()[0])


@pytest.fixture
def limited_client(client, monkeypatch):
    """TestClient with the limiter enabled and empty counters."""
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()

    yield client

    limiter.reset()


class TestRateLimitContract:
    """Contract tests for 429 responses."""

    def test_login_limited(self, limited_client):
        """Test logins past the limit return 429 instead of 401."""
        codes = [
            limited_client.post(LOGIN_URL, json={"email": "ravi@example.com", "password": "wrong"}).status_code
            for _ in range(ALLOWED + 2)
        ]

        assert codes == [401] * ALLOWED + [429, 429]

    def test_signup_limited(self, limited_client):
        """Test signups past the limit return 429."""
        body = {"email": "asha@example.com", "password": "secret123"}

        codes = [limited_client.post(SIGNUP_URL, json=body).status_code for _ in range(ALLOWED + 1)]
        response = limited_client.post(SIGNUP_URL, json=body)

        assert codes == [400] * ALLOWED + [429]
        assert response.status_code == 429
        assert "Rate limit exceeded" in response.text

    def test_limits_are_per_endpoint(self, limited_client):
        """Test using up the login limit leaves signup available."""
        for _ in range(ALLOWED + 1):
            limited_client.post(LOGIN_URL, json={"email": "ravi@example.com", "password": "wrong"})

        response = limited_client.post(SIGNUP_URL, json={"email": "asha@example.com", "password": "secret123"})

        assert response.status_code == 400

    def test_profile_not_limited(self, limited_client, candidate_headers):
        """Test authenticated profile reads are outside the auth limit."""
        codes = {
            limited_client.get(SIGNUP_URL, headers=candidate_headers).status_code
            for _ in range(ALLOWED + 2)
        }

        assert codes == {200}
