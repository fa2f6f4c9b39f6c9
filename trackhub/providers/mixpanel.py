"""
Mixpanel adapter.

API Docs: https://developer.mixpanel.com/reference/ingestion-api
"""

import time
from datetime import UTC, datetime

import httpx

from trackhub.config import MIXPANEL_PLACEHOLDER_TOKEN
from trackhub.diagnostics import DiagnosticLog
from trackhub.models import ErrorKind, Outcome, ProviderConfig
from trackhub.providers.base import HttpAnalyticsProvider, ProviderError


class MixpanelProvider(HttpAnalyticsProvider):
    """Mixpanel events (``/track``) and people profiles (``/engage``)."""

    display_name = "Mixpanel"

    def __init__(
        self,
        config: ProviderConfig,
        diagnostics: DiagnosticLog,
        base_url: str = "https://api.mixpanel.com",
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(config, diagnostics, base_url, http=http, timeout=timeout)
        self.distinct_id: str | None = None

    def _credential_configured(self) -> bool:
        return self.config.has_credential and self.config.credential != MIXPANEL_PLACEHOLDER_TOKEN

    async def _setup(self) -> dict:
        if not self._credential_configured():
            raise ProviderError("Token not configured", ErrorKind.CONFIGURATION_INVALID)
        return {}

    async def _engage(self, operation: str, value: dict) -> None:
        if not self.distinct_id:
            raise ProviderError("No identified user")
        await self._send(
            "POST",
            "/engage",
            json=[{
                "$token": self.config.credential,
                "$distinct_id": self.distinct_id,
                operation: value,
            }],
        )

    async def _identify(self, user_id: str, properties: dict) -> dict:
        self.distinct_id = user_id
        await self._engage("$set", properties)
        return {"properties": properties}

    async def _track(self, event_name: str, properties: dict) -> dict:
        payload = {
            **properties,
            "token": self.config.credential,
            "time": int(time.time()),
        }
        if self.distinct_id:
            payload["distinct_id"] = self.distinct_id

        await self._send("POST", "/track", json=[{"event": event_name, "properties": payload}])
        return {"properties": properties}

    async def set_user_properties(self, properties: dict) -> Outcome:
        """Set properties on the identified user's profile."""
        props = dict(properties)

        async def call():
            await self._engage("$set", props)
            return {"properties": props}

        return await self._run("user properties", "user properties set", call)

    async def track_revenue(self, amount: float, properties: dict | None = None) -> Outcome:
        """Append a transaction to the identified user's profile."""
        transaction = {
            "$amount": amount,
            "$time": datetime.now(UTC).isoformat(),
            **(properties or {}),
        }

        async def call():
            await self._engage("$append", {"$transactions": transaction})
            return {"properties": properties or {}}

        return await self._run("revenue tracking", "revenue tracked", call, amount=amount)

    def _status_details(self) -> dict:
        return {"distinct_id": self.distinct_id}
