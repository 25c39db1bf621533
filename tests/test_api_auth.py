"""
Tests for API authentication.

Tests X-API-Key header authentication when API_AUTH_ENABLED=true.
"""

import importlib
import os
from unittest.mock import patch

from fastapi.testclient import TestClient


# Test API key for testing
TEST_API_KEY = "test-secret-key-12345"


def build_client() -> TestClient:
    """Reload auth and main so the app is rebuilt from the current env."""
    import jetstream.api.dependencies.auth as auth_module

    importlib.reload(auth_module)

    import jetstream.api.main as main_module

    importlib.reload(main_module)

    return TestClient(main_module.app)


class TestAuthDisabled:
    """Tests when authentication is disabled (default)."""

    def test_health_no_auth_required(self, dispatch_service):
        """Health endpoint should work without auth."""
        with patch.dict(os.environ, {"API_AUTH_ENABLED": "false"}, clear=False):
            client = build_client()
            response = client.get("/health")

            assert response.status_code == 200
            assert response.json()["status"] == "ok"

    def test_jobs_open_without_key(self, dispatch_service):
        """Job endpoints need no key when auth is disabled."""
        with patch.dict(os.environ, {"API_AUTH_ENABLED": "false"}, clear=False):
            client = build_client()
            response = client.get("/api/jobs")

            assert response.status_code == 200


class TestAuthEnabled:
    """Tests when authentication is enabled."""

    def test_health_no_auth_required_even_when_enabled(self, dispatch_service):
        """Health endpoint should work without auth even when auth is enabled."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": TEST_API_KEY},
            clear=False,
        ):
            client = build_client()
            response = client.get("/health")

            assert response.status_code == 200

    def test_protected_endpoint_requires_auth(self, dispatch_service):
        """Protected endpoints should require auth when enabled."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": TEST_API_KEY},
            clear=False,
        ):
            client = build_client()
            response = client.get("/api/jobs")

            assert response.status_code == 401
            assert "Missing API key" in response.json()["detail"]

    def test_protected_endpoint_with_valid_key(self, dispatch_service):
        """Protected endpoints should work with valid API key."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": TEST_API_KEY},
            clear=False,
        ):
            client = build_client()
            response = client.get("/api/jobs", headers={"X-API-Key": TEST_API_KEY})

            assert response.status_code == 200

    def test_protected_endpoint_with_invalid_key(self, dispatch_service):
        """Protected endpoints should reject invalid API key."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": TEST_API_KEY},
            clear=False,
        ):
            client = build_client()
            response = client.get("/api/jobs", headers={"X-API-Key": "wrong-key"})

            assert response.status_code == 401
            assert "Invalid API key" in response.json()["detail"]

    def test_empty_server_key_rejects_everything(self, dispatch_service):
        """An enabled flag without a configured key never authenticates."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": ""},
            clear=False,
        ):
            client = build_client()
            response = client.get("/api/logs", headers={"X-API-Key": "anything"})

            assert response.status_code == 401

    def test_all_routers_require_auth_when_enabled(self, dispatch_service):
        """All routers should require auth when enabled."""
        with patch.dict(
            os.environ,
            {"API_AUTH_ENABLED": "true", "API_KEY": TEST_API_KEY},
            clear=False,
        ):
            client = build_client()

            protected_endpoints = [
                ("GET", "/api/jobs"),
                ("GET", "/api/logs"),
                ("POST", "/api/jobs/some-id/stop"),
                ("DELETE", "/api/jobs/some-id"),
            ]

            for method, path in protected_endpoints:
                response = client.request(method, path)
                assert response.status_code == 401, f"Expected 401 for {method} {path}"
