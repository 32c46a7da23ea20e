"""
Tests for the manual control API.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from fastapi.testclient import TestClient

from api.auth import trigger_rate_limiter
from api.config import config as api_config
from api.main import app
from crawler.models import IdentityKey


API_KEY = "ck_test_5b1c9e0d7f2a4e68"
AUTH_HEADERS = {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def client():
    """Test client without lifespan, so no real scheduler is started."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def api_keys():
    """Configure a single valid API key and a fresh rate limiter."""
    trigger_rate_limiter.reset()
    with patch.object(api_config, 'api_keys', API_KEY):
        yield
    trigger_rate_limiter.reset()


@pytest.fixture
def service(scheduler_service):
    """Install the scheduler service the endpoints use."""
    with patch('api.main.scheduler_service', scheduler_service):
        yield scheduler_service


def cpi_row(row_factory, actual):
    return row_factory(event="CPI", currency="EUR", time="09:00", actual=actual, forecast="2.0%")


class TestHealth:
    """Test cases for the health endpoint."""

    def test_health_without_service(self, client):
        with patch('api.main.scheduler_service', None):
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["scheduler_status"] == "unavailable"

    def test_health_with_stopped_scheduler(self, client, service):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["scheduler_status"] == "stopped"


class TestAuthentication:
    """Test cases for API key checks."""

    def test_missing_credentials(self, client, service):
        response = client.get("/status")

        assert response.status_code in (401, 403)

    def test_invalid_key(self, client, service):
        response = client.get("/status", headers={"Authorization": "Bearer wrong_key"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid API key"

    def test_service_unavailable(self, client):
        with patch('api.main.scheduler_service', None):
            response = client.get("/status", headers=AUTH_HEADERS)

        assert response.status_code == 503


class TestStatusAndCache:
    """Test cases for read-only endpoints."""

    def test_status(self, client, service):
        service._add_scheduled_jobs()

        response = client.get("/status", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["job_count"] == 2
        assert data["poll_hours"] == "8-22"

    def test_cache(self, client, service):
        service.cache.set(IdentityKey("EUR", None, "CPI", "09:00"), Decimal("2.1"))

        response = client.get("/cache", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["size"] == 1
        assert data["entries"][0] == {
            "currency_code": "EUR",
            "country_name": None,
            "event_name": "CPI",
            "scheduled_time": "09:00",
            "value": "2.1"
        }


class TestTriggers:
    """Test cases for manual trigger endpoints."""

    def test_trigger_digest(self, client, service, mock_fetcher, mock_notifier, row_factory):
        mock_fetcher.fetch_rows.return_value = [cpi_row(row_factory, "2.1%")]

        response = client.post("/trigger/digest", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["job"] == "digest"
        assert data["success"] is True
        assert data["message_sent"] is True
        assert response.headers["X-RateLimit-Remaining"] == str(api_config.manual_trigger_rate_limit - 1)
        assert service.cache.get(IdentityKey("EUR", None, "CPI", "09:00")) == Decimal("2.1")
        mock_notifier.send.assert_awaited_once()

    def test_trigger_poll_dry_run(self, client, service, mock_fetcher, mock_notifier, row_factory):
        mock_fetcher.fetch_rows.return_value = [cpi_row(row_factory, "2.4%")]

        response = client.post("/trigger/poll?dry_run=true", headers=AUTH_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["notifications"] == 1
        assert "CPI: 2.4% above forecast" in data["message"]
        assert data["message_sent"] is False
        assert len(service.cache) == 0
        mock_notifier.send.assert_not_awaited()

    def test_trigger_poll(self, client, service, mock_fetcher, mock_notifier, row_factory):
        mock_fetcher.fetch_rows.return_value = [cpi_row(row_factory, "2.4%")]

        response = client.post("/trigger/poll", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json()["message_sent"] is True
        assert len(service.cache) == 1

    def test_trigger_rate_limit(self, client, service):
        with patch.object(trigger_rate_limiter, 'limit', 1):
            first = client.post("/trigger/poll", headers=AUTH_HEADERS)
            second = client.post("/trigger/poll", headers=AUTH_HEADERS)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.headers["X-RateLimit-Remaining"] == "0"


class TestRateLimiter:
    """Test cases for the in-memory rate limiter."""

    def test_limit_and_info(self):
        from api.auth import RateLimiter

        limiter = RateLimiter(limit=2, window_seconds=60)

        assert limiter.check_rate_limit("key")
        assert limiter.check_rate_limit("key")
        assert not limiter.check_rate_limit("key")
        assert limiter.check_rate_limit("other")

        info = limiter.get_rate_limit_info("key")
        assert info["requests_used"] == 2
        assert info["requests_remaining"] == 0
