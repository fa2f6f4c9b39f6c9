"""Tests for the Mixpanel adapter."""

import pytest

from trackhub.config import MIXPANEL_PLACEHOLDER_TOKEN
from trackhub.models import CredentialState, ErrorKind
from trackhub.providers.mixpanel import MixpanelProvider


@pytest.fixture
def mixpanel(make_config, diagnostics, mock_http):
    return MixpanelProvider(
        make_config(name="mixpanel", credential="mp-token-123456"),
        diagnostics,
        http=mock_http,
    )


class TestMixpanelInitialize:
    """Tests for MixpanelProvider.initialize."""

    @pytest.mark.asyncio
    async def test_initialize_with_token(self, mixpanel):
        outcome = await mixpanel.initialize()
        assert outcome.ok
        assert mixpanel.get_status().credential_state == CredentialState.CONFIGURED

    @pytest.mark.asyncio
    async def test_placeholder_token_is_not_configured(self, make_config, diagnostics, mock_http):
        provider = MixpanelProvider(
            make_config(name="mixpanel", credential=MIXPANEL_PLACEHOLDER_TOKEN),
            diagnostics,
            http=mock_http,
        )

        outcome = await provider.initialize()

        assert outcome.failed
        assert outcome.kind == ErrorKind.CONFIGURATION_INVALID
        assert provider.get_status().credential_state == CredentialState.NOT_CONFIGURED


class TestMixpanelCalls:
    """Tests for Mixpanel ingestion calls."""

    @pytest.mark.asyncio
    async def test_identify_sets_profile(self, mixpanel, mock_http):
        await mixpanel.initialize()

        outcome = await mixpanel.identify_user("user-42", {"name": "Demo User"})

        assert outcome.ok
        assert mixpanel.distinct_id == "user-42"
        method, url = mock_http.request.call_args.args
        assert url == "https://api.mixpanel.com/engage"
        update = mock_http.request.call_args.kwargs["json"][0]
        assert update["$token"] == "mp-token-123456"
        assert update["$distinct_id"] == "user-42"
        assert update["$set"] == {"name": "Demo User"}

    @pytest.mark.asyncio
    async def test_track_includes_token_and_distinct_id(self, mixpanel, mock_http):
        await mixpanel.initialize()
        await mixpanel.identify_user("user-42", {})

        await mixpanel.track_event("signup", {"plan": "pro"})

        method, url = mock_http.request.call_args.args
        assert url == "https://api.mixpanel.com/track"
        event = mock_http.request.call_args.kwargs["json"][0]
        assert event["event"] == "signup"
        assert event["properties"]["token"] == "mp-token-123456"
        assert event["properties"]["distinct_id"] == "user-42"
        assert event["properties"]["plan"] == "pro"

    @pytest.mark.asyncio
    async def test_page_view_uses_reserved_event(self, mixpanel, mock_http):
        await mixpanel.initialize()

        await mixpanel.track_page_view("Pricing", {})

        event = mock_http.request.call_args.kwargs["json"][0]
        assert event["event"] == "Page View"
        assert event["properties"]["page"] == "Pricing"

    @pytest.mark.asyncio
    async def test_set_user_properties(self, mixpanel, diagnostics, mock_http):
        await mixpanel.initialize()
        await mixpanel.identify_user("user-42", {})

        outcome = await mixpanel.set_user_properties({"tier": "gold"})

        assert outcome.ok
        assert mock_http.request.call_args.kwargs["json"][0]["$set"] == {"tier": "gold"}
        assert diagnostics.snapshot()[-1].message == "Mixpanel user properties set"

    @pytest.mark.asyncio
    async def test_track_revenue_appends_transaction(self, mixpanel, mock_http):
        await mixpanel.initialize()
        await mixpanel.identify_user("user-42", {})

        outcome = await mixpanel.track_revenue(9.99, {"sku": "basic"})

        assert outcome.ok
        update = mock_http.request.call_args.kwargs["json"][0]
        transaction = update["$append"]["$transactions"]
        assert transaction["$amount"] == 9.99
        assert transaction["sku"] == "basic"

    @pytest.mark.asyncio
    async def test_revenue_without_identified_user_fails(self, mixpanel, mock_http):
        await mixpanel.initialize()

        outcome = await mixpanel.track_revenue(5.0)

        assert outcome.failed
        assert outcome.reason == "No identified user"
        mock_http.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_extras_respect_initialize_guard(self, mixpanel):
        outcome = await mixpanel.set_user_properties({"tier": "gold"})
        assert outcome.kind == ErrorKind.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_reserved_fields_not_overridden_by_properties(self, mixpanel, mock_http):
        await mixpanel.initialize()
        await mixpanel.identify_user("user-42", {})

        await mixpanel.track_event(
            "purchase",
            {"token": "other-project", "time": "bogus", "distinct_id": "someone-else"},
        )

        properties = mock_http.request.call_args.kwargs["json"][0]["properties"]
        assert properties["token"] == "mp-token-123456"
        assert isinstance(properties["time"], int)
        assert properties["distinct_id"] == "user-42"
