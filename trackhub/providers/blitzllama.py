"""
Blitzllama adapter.

Blitzllama runs in-product surveys; it needs to know who the user is and
which events and pages they hit so surveys can be targeted.
"""

from datetime import UTC, datetime
from urllib.parse import quote

import httpx

from trackhub.diagnostics import DiagnosticLog
from trackhub.models import Outcome, ProviderConfig
from trackhub.providers.base import HttpAnalyticsProvider


class BlitzllamaProvider(HttpAnalyticsProvider):
    """Bearer-authenticated REST client for Blitzllama."""

    display_name = "Blitzllama"

    def __init__(
        self,
        config: ProviderConfig,
        diagnostics: DiagnosticLog,
        base_url: str = "https://api.blitzllama.com",
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(config, diagnostics, base_url, http=http, timeout=timeout)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.credential}",
            "Content-Type": "application/json",
        }

    async def _setup(self) -> dict:
        self._require_credential()
        return {"base_url": self.base_url}

    async def _identify(self, user_id: str, properties: dict) -> dict:
        await self._send(
            "PUT",
            f"/users/{quote(user_id, safe='')}",
            headers=self.headers,
            json={
                "userId": user_id,
                "properties": {**properties, "lastSeen": datetime.now(UTC).isoformat()},
            },
        )
        return {"properties": properties}

    async def _track(self, event_name: str, properties: dict) -> dict:
        await self._send(
            "POST",
            "/events",
            headers=self.headers,
            json={"event": event_name, "properties": properties},
        )
        return {"properties": properties}

    async def _page(self, page_name: str, properties: dict) -> dict:
        await self._send(
            "POST",
            "/page-views",
            headers=self.headers,
            json={"page": page_name, "properties": properties},
        )
        return {"properties": properties}

    async def create_user(self, user_id: str, user_data: dict | None = None) -> Outcome:
        """Register a user for survey targeting."""
        data = dict(user_data or {})

        async def call():
            await self._send(
                "POST",
                "/users",
                headers=self.headers,
                json={"userId": user_id, "data": data},
            )
            return {"user_data": data}

        return await self._run("user creation", "user created", call, user_id=user_id)

    def _status_details(self) -> dict:
        return {"base_url": self.base_url}
