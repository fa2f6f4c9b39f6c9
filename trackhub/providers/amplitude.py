"""
Amplitude adapter.

Sends events through the HTTP V2 ingestion API and user properties through
the Identify API.

API Docs:
- https://www.docs.developers.amplitude.com/analytics/apis/http-v2-api/
- https://www.docs.developers.amplitude.com/analytics/apis/identify-api/
"""

import json
import secrets
import time

import httpx

from trackhub.diagnostics import DiagnosticLog
from trackhub.models import ProviderConfig
from trackhub.providers.base import HttpAnalyticsProvider, ProviderError

# Amplitude rejects user ids shorter than this.
MIN_USER_ID_LENGTH = 5


def generate_device_id() -> str:
    return f"device_{time.time_ns() // 1_000_000}_{secrets.token_hex(6)}"


class AmplitudeProvider(HttpAnalyticsProvider):
    """
    Amplitude product analytics.

    Usage:
        amplitude = AmplitudeProvider(config, diagnostics)
        await amplitude.initialize()
        await amplitude.identify_user("ab", {"plan": "pro"})  # sent as "user_ab"
        await amplitude.track_event("purchase", {"amount": 9.99})
        await amplitude.close()
    """

    display_name = "Amplitude"

    def __init__(
        self,
        config: ProviderConfig,
        diagnostics: DiagnosticLog,
        base_url: str = "https://api2.amplitude.com",
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(config, diagnostics, base_url, http=http, timeout=timeout)
        self.device_id: str | None = None
        self.user_id: str | None = None

    def validate_user_id(self, user_id: str | None) -> str:
        """Return an identifier Amplitude will accept.

        Short ids are prefixed with ``user_``; a missing id falls back to an
        anonymous id derived from this adapter's device id. The same input
        always yields the same output for the adapter's lifetime.
        """
        if not user_id or not isinstance(user_id, str):
            return f"anonymous_{self.device_id}"
        if len(user_id) < MIN_USER_ID_LENGTH:
            return f"user_{user_id}"
        return user_id

    def _set_user_id(self, user_id: str | None) -> dict:
        valid_user_id = self.validate_user_id(user_id)
        self.user_id = valid_user_id
        return {"original_user_id": user_id, "valid_user_id": valid_user_id}

    async def _setup(self) -> dict:
        self._require_credential()
        self.device_id = generate_device_id()
        return {"device_id": self.device_id}

    async def _identify(self, user_id: str, properties: dict) -> dict:
        ids = self._set_user_id(user_id)
        identification = {
            "user_id": self.user_id,
            "device_id": self.device_id,
            "user_properties": {"$set": properties},
        }
        try:
            await self._send(
                "POST",
                "/identify",
                data={
                    "api_key": self.config.credential,
                    "identification": json.dumps([identification]),
                },
            )
        except ProviderError as e:
            raise ProviderError(str(e), e.kind, **ids) from e
        except Exception as e:
            raise ProviderError(str(e), **ids) from e
        return {**ids, "device_id": self.device_id, "properties": properties}

    async def _track(self, event_name: str, properties: dict) -> dict:
        event = {
            "device_id": self.device_id,
            "event_type": event_name,
            "event_properties": properties,
            "time": time.time_ns() // 1_000_000,
        }
        if self.user_id:
            event["user_id"] = self.user_id

        response = await self._send(
            "POST",
            "/2/httpapi",
            json={"api_key": self.config.credential, "events": [event]},
        )
        return {"properties": properties, "status": response.status_code}

    def _status_details(self) -> dict:
        return {"device_id": self.device_id}
