"""
Pytest configuration and shared fixtures.
"""

import importlib
import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from jetstream.engine import DispatchService, NotifyResult


@pytest.fixture(autouse=True, scope="function")
def reset_auth_module():
    """
    Reset auth module state before each test.

    This ensures tests run with API_AUTH_ENABLED=false by default,
    unless the test explicitly sets it otherwise.
    """
    original_auth_enabled = os.environ.get("API_AUTH_ENABLED")
    original_api_key = os.environ.get("API_KEY")

    os.environ["API_AUTH_ENABLED"] = "false"

    yield

    if original_auth_enabled is not None:
        os.environ["API_AUTH_ENABLED"] = original_auth_enabled
    elif "API_AUTH_ENABLED" in os.environ:
        del os.environ["API_AUTH_ENABLED"]

    if original_api_key is not None:
        os.environ["API_KEY"] = original_api_key
    elif "API_KEY" in os.environ:
        del os.environ["API_KEY"]

    # Auth flags are read at import time; the app is built from them
    import jetstream.api.dependencies.auth as auth_module
    import jetstream.api.main as main_module

    importlib.reload(auth_module)
    importlib.reload(main_module)


@pytest.fixture
def delivery_transport():
    """Transport mock accepting every delivery."""
    return MagicMock(name="transport")


@pytest.fixture
def dispatch_service(delivery_transport):
    """
    DispatchService installed as the API singleton.

    Notifications run inline and tasks never fire on their own.
    """
    from jetstream.api._service_state import set_dispatch_service

    notifier = MagicMock(name="notifier")
    notifier.send.return_value = NotifyResult.success()

    service = DispatchService.create(
        transport=delivery_transport,
        notifier=notifier,
        background_notifications=False,
        task_factory=MagicMock(name="task_factory"),
    )
    set_dispatch_service(service)

    yield service

    set_dispatch_service(None)


@pytest.fixture
def client(dispatch_service):
    """Create test client for API (lifespan not run)."""
    from jetstream.api.main import app
    return TestClient(app)
