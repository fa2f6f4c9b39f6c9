"""
VWO (Visual Website Optimizer) adapter.

VWO is not called over HTTP by this service. Its SmartCode runs in the
host and exposes a handle once loaded; the host attaches that handle to a
``VWOBridge``. ``initialize`` polls the bridge until a handle appears or
the readiness timeout expires.
"""

import asyncio
import inspect
from typing import Any, Protocol

from trackhub.diagnostics import DiagnosticLog
from trackhub.models import ErrorKind, Outcome, ProviderConfig
from trackhub.providers.base import AnalyticsProvider, ProviderError


class VWOHandle(Protocol):
    """What the SmartCode handle offers. Methods may be sync or async."""

    def track(self, event_name: str, properties: dict) -> Any: ...

    def set_custom_variable(self, key: str, value: Any, scope: str) -> Any: ...


class VWOBridge:
    """Holds the VWO handle once the host has loaded it."""

    def __init__(self, handle: VWOHandle | None = None):
        self._handle = handle

    @property
    def handle(self) -> VWOHandle | None:
        return self._handle

    def attach(self, handle: VWOHandle) -> None:
        self._handle = handle

    def detach(self) -> None:
        self._handle = None


class VWOProvider(AnalyticsProvider):
    """A/B testing and conversion tracking through the VWO SmartCode handle."""

    display_name = "VWO"

    def __init__(
        self,
        config: ProviderConfig,
        diagnostics: DiagnosticLog,
        bridge: VWOBridge | None = None,
        poll_interval: float = 0.1,
        ready_timeout: float = 10.0,
    ):
        super().__init__(config, diagnostics)
        self.bridge = bridge or VWOBridge()
        self.poll_interval = poll_interval
        self.ready_timeout = ready_timeout
        self.handle: VWOHandle | None = None
        self.version = "unknown"

    @property
    def account_id(self) -> str:
        return self.config.credential

    async def _wait_for_handle(self) -> VWOHandle:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.ready_timeout
        while self.bridge.handle is None:
            if loop.time() >= deadline:
                raise ProviderError(f"VWO SmartCode not detected within {self.ready_timeout}s")
            await asyncio.sleep(self.poll_interval)
        return self.bridge.handle

    async def _invoke(self, method: str, *args: Any) -> Any:
        func = getattr(self.handle, method, None)
        if func is None:
            raise ProviderError(f"VWO {method} method not available")
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _set_variables(self, variables: dict, scope: str) -> None:
        for key, value in variables.items():
            await self._invoke("set_custom_variable", key, value, scope)

    async def _setup(self) -> dict:
        if not self.config.has_credential:
            raise ProviderError("Account ID not configured", ErrorKind.CONFIGURATION_INVALID)
        handle = await self._wait_for_handle()
        get_version = getattr(handle, "get_version", None)
        # Status reads the stored value; it never calls into the handle.
        self.version = str(get_version()) if get_version is not None else "unknown"
        self.handle = handle
        return {"account_id": self.account_id, "version": self.version}

    async def _identify(self, user_id: str, properties: dict) -> dict:
        await self._set_variables({"userId": user_id, **properties}, "user")
        return {"properties": properties}

    async def _track(self, event_name: str, properties: dict) -> dict:
        await self._invoke("track", event_name, properties)
        return {"properties": properties}

    async def _page(self, page_name: str, properties: dict) -> dict:
        await self._set_variables({"pageName": page_name, **properties}, "page")
        return {"properties": properties}

    async def set_custom_variable(self, key: str, value: Any, scope: str = "user") -> Outcome:
        """Set one custom variable for experiment targeting."""

        async def call():
            await self._invoke("set_custom_variable", key, value, scope)
            return {"value": value, "scope": scope}

        return await self._run("custom variable", "custom variable set", call, key=key)

    async def get_experiment_data(self, experiment_id: str) -> Outcome:
        """Fetch data for one experiment from the handle."""

        async def call():
            data = await self._invoke("get_experiment_data", experiment_id)
            return {"experiment": data}

        return await self._run(
            "experiment data retrieval",
            "experiment data retrieved",
            call,
            experiment_id=experiment_id,
        )

    def _status_details(self) -> dict:
        return {
            "account_id": self.account_id,
            "version": self.version,
            "has_handle": self.handle is not None,
        }
