"""Tests for the Amplitude adapter."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from trackhub.models import ErrorKind, ProviderState
from trackhub.providers.amplitude import MIN_USER_ID_LENGTH, AmplitudeProvider


@pytest.fixture
def amplitude(make_config, diagnostics, mock_http):
    config = make_config(name="amplitude", credential="43f7b07dcb7fcfe58a8091a289990c30")
    return AmplitudeProvider(config, diagnostics, http=mock_http)


class TestAmplitudeInitialize:
    """Tests for AmplitudeProvider.initialize."""

    def test_init_defaults(self, make_config, diagnostics):
        provider = AmplitudeProvider(make_config(), diagnostics)
        assert provider.base_url == "https://api2.amplitude.com"
        assert provider.device_id is None
        assert isinstance(provider.http, httpx.AsyncClient)

    @pytest.mark.asyncio
    async def test_initialize_generates_device_id(self, amplitude, diagnostics):
        outcome = await amplitude.initialize()

        assert outcome.ok
        assert amplitude.device_id.startswith("device_")
        record = diagnostics.snapshot()[0]
        assert record.message == "Amplitude initialized successfully"
        assert record.data["device_id"] == amplitude.device_id
        assert record.data["credential"].startswith("43f7b07d...")

    @pytest.mark.asyncio
    async def test_initialize_without_key(self, make_config, diagnostics, mock_http):
        provider = AmplitudeProvider(make_config(credential=""), diagnostics, http=mock_http)

        outcome = await provider.initialize()

        assert outcome.failed
        assert outcome.kind == ErrorKind.CONFIGURATION_INVALID
        assert provider.state == ProviderState.DISABLED
        mock_http.request.assert_not_called()


class TestAmplitudeUserIds:
    """Tests for user id validation."""

    @pytest.mark.asyncio
    async def test_short_id_is_prefixed(self, amplitude):
        await amplitude.initialize()
        assert amplitude.validate_user_id("ab") == "user_ab"
        assert len(amplitude.validate_user_id("1")) >= MIN_USER_ID_LENGTH

    @pytest.mark.asyncio
    async def test_substitution_is_deterministic(self, amplitude):
        await amplitude.initialize()
        assert amplitude.validate_user_id("ab") == amplitude.validate_user_id("ab")

    @pytest.mark.asyncio
    async def test_long_id_unchanged(self, amplitude):
        await amplitude.initialize()
        assert amplitude.validate_user_id("user_12345") == "user_12345"

    @pytest.mark.asyncio
    async def test_missing_id_becomes_anonymous(self, amplitude):
        await amplitude.initialize()
        assert amplitude.validate_user_id("") == f"anonymous_{amplitude.device_id}"
        assert amplitude.validate_user_id(None) == f"anonymous_{amplitude.device_id}"


class TestAmplitudeCalls:
    """Tests for identify / track / page view."""

    @pytest.mark.asyncio
    async def test_identify_short_id_logs_substitute(self, amplitude, diagnostics, mock_http):
        await amplitude.initialize()
        diagnostics.clear()
        properties = {"email": "ab@example.com"}

        outcome = await amplitude.identify_user("ab", properties)

        assert outcome.ok
        assert outcome.data["valid_user_id"] == "user_ab"
        assert properties == {"email": "ab@example.com"}

        method, url = mock_http.request.call_args.args
        assert method == "POST"
        assert url == "https://api2.amplitude.com/identify"
        form = mock_http.request.call_args.kwargs["data"]
        identification = json.loads(form["identification"])[0]
        assert identification["user_id"] == "user_ab"
        assert identification["user_properties"] == {"$set": {"email": "ab@example.com"}}

        record = diagnostics.snapshot()[0]
        assert record.message == "Amplitude user identified"
        assert record.data["original_user_id"] == "ab"
        assert record.data["valid_user_id"] == "user_ab"

    @pytest.mark.asyncio
    async def test_track_event_payload(self, amplitude, mock_http):
        await amplitude.initialize()
        await amplitude.identify_user("user_12345", {})

        outcome = await amplitude.track_event("purchase", {"amount": 9.99})

        assert outcome.ok
        method, url = mock_http.request.call_args.args
        assert url == "https://api2.amplitude.com/2/httpapi"
        body = mock_http.request.call_args.kwargs["json"]
        assert body["api_key"] == "43f7b07dcb7fcfe58a8091a289990c30"
        event = body["events"][0]
        assert event["event_type"] == "purchase"
        assert event["event_properties"] == {"amount": 9.99}
        assert event["user_id"] == "user_12345"
        assert event["device_id"] == amplitude.device_id

    @pytest.mark.asyncio
    async def test_anonymous_event_has_no_user_id(self, amplitude, mock_http):
        await amplitude.initialize()

        await amplitude.track_event("landing", {})

        event = mock_http.request.call_args.kwargs["json"]["events"][0]
        assert "user_id" not in event

    @pytest.mark.asyncio
    async def test_page_view(self, amplitude, mock_http):
        await amplitude.initialize()

        await amplitude.track_page_view("Dashboard", {"section": "overview"})

        event = mock_http.request.call_args.kwargs["json"]["events"][0]
        assert event["event_type"] == "Page View"
        assert event["event_properties"] == {"page": "Dashboard", "section": "overview"}

    @pytest.mark.asyncio
    async def test_http_error_is_failed_outcome(self, amplitude, diagnostics, mock_http, make_response):
        await amplitude.initialize()
        mock_http.request = AsyncMock(return_value=make_response(400, {"error": "invalid"}))
        diagnostics.clear()

        outcome = await amplitude.track_event("purchase", {})

        assert outcome.failed
        assert outcome.kind == ErrorKind.VENDOR_CALL_FAILED
        assert "HTTP 400" in outcome.reason
        assert diagnostics.snapshot()[0].message == "Amplitude event tracking failed"

    @pytest.mark.asyncio
    async def test_network_error_is_failed_outcome(self, amplitude, mock_http):
        await amplitude.initialize()
        mock_http.request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))

        outcome = await amplitude.identify_user("user_12345", {})

        assert outcome.failed
        assert outcome.reason == "connection refused"

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, amplitude, mock_http):
        await amplitude.close()
        mock_http.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_owned_client(self, make_config, diagnostics):
        provider = AmplitudeProvider(make_config(), diagnostics)
        provider.http.aclose = AsyncMock()

        await provider.close()

        provider.http.aclose.assert_called_once()

    @pytest.mark.asyncio
    async def test_identify_failure_records_both_ids(self, amplitude, diagnostics, mock_http, make_response):
        await amplitude.initialize()
        mock_http.request = AsyncMock(return_value=make_response(500))
        diagnostics.clear()

        outcome = await amplitude.identify_user("ab", {})

        assert outcome.failed
        assert outcome.kind == ErrorKind.VENDOR_CALL_FAILED
        record = diagnostics.snapshot()[0]
        assert record.message == "Amplitude user identification failed"
        assert record.data["error"] == "Amplitude API error: HTTP 500"
        assert record.data["original_user_id"] == "ab"
        assert record.data["valid_user_id"] == "user_ab"

    @pytest.mark.asyncio
    async def test_identify_network_failure_records_both_ids(self, amplitude, diagnostics, mock_http):
        await amplitude.initialize()
        mock_http.request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        diagnostics.clear()

        await amplitude.identify_user("xy", {})

        record = diagnostics.snapshot()[0]
        assert record.data["original_user_id"] == "xy"
        assert record.data["valid_user_id"] == "user_xy"
