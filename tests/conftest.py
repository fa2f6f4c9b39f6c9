"""Shared fixtures for analytics service tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring real API keys"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# Keep local .env credentials out of the test run
for var in (
    "AMPLITUDE_API_KEY",
    "MIXPANEL_TOKEN",
    "BLITZLLAMA_API_KEY",
    "VWO_ACCOUNT_ID",
):
    os.environ.pop(var, None)


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("AMPLITUDE_API_KEY", "amp-test-key-1234567890")
    monkeypatch.setenv("MIXPANEL_TOKEN", "mp-test-token-abcdef")
    monkeypatch.setenv("MIXPANEL_ENABLED", "true")
    monkeypatch.setenv("BLITZLLAMA_API_KEY", "key_test_blitz")
    monkeypatch.setenv("VWO_ACCOUNT_ID", "3000655")
    monkeypatch.setenv("VWO_READY_TIMEOUT_SECONDS", "0.2")
    monkeypatch.setenv("VWO_POLL_INTERVAL_SECONDS", "0.01")


@pytest.fixture
def session_id():
    return "session_1700000000000_abc123def4567"


@pytest.fixture
def diagnostics(session_id):
    """Empty diagnostic log bound to a fixed session id."""
    from trackhub.diagnostics import DiagnosticLog

    return DiagnosticLog(session_id)


@pytest.fixture
def make_config():
    """Factory for provider configs."""
    from trackhub.models import ProviderConfig

    def _make(name="amplitude", credential="test-credential-123456", enabled=True):
        return ProviderConfig(name=name, credential=credential, enabled=enabled)

    return _make


@pytest.fixture
def make_response():
    """Factory for mock httpx responses."""

    def _make(status_code=200, json_data=None):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data or {}
        response.text = str(json_data or {})
        return response

    return _make


@pytest.fixture
def mock_http(make_response):
    """Mock httpx AsyncClient answering every request with HTTP 200."""
    client = AsyncMock()
    client.request = AsyncMock(return_value=make_response(200, {"code": 200}))
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def vwo_handle():
    """Stand-in for the VWO SmartCode handle."""
    handle = MagicMock()
    handle.get_version.return_value = "7.0"
    handle.get_experiment_data.return_value = {"variation": "B"}
    return handle
