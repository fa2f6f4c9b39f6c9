"""
Provider adapter interface.

Each analytics backend is wrapped by one ``AnalyticsProvider`` subclass.
Subclasses implement the vendor calls (``_setup``, ``_identify``,
``_track``, ``_page``); this base class supplies the parts every adapter
must share:

- the not-initialized guard
- conversion of vendor exceptions into ``Outcome`` values
- exactly one diagnostic record per call
- credential masking in those records
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from trackhub.diagnostics import DiagnosticLog
from trackhub.models import (
    CredentialState,
    ErrorKind,
    Outcome,
    ProviderConfig,
    ProviderState,
    ProviderStatus,
)

logger = structlog.get_logger(__name__)

PAGE_VIEW_EVENT = "Page View"


class ProviderError(Exception):
    """Raised inside an adapter to fail the current call with a specific kind."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.VENDOR_CALL_FAILED,
        **details: Any,
    ):
        super().__init__(message)
        self.kind = kind
        self.details = details


def mask_credential(credential: str | None) -> str:
    """Show at most the first 8 characters (never more than half) plus the length."""
    if not credential:
        return "<empty>"
    visible = min(8, len(credential) // 2)
    return f"{credential[:visible]}... ({len(credential)} chars)"


class AnalyticsProvider(ABC):
    """Base class for analytics backend adapters."""

    display_name: str = "Provider"

    def __init__(self, config: ProviderConfig, diagnostics: DiagnosticLog):
        self.config = config
        self.diagnostics = diagnostics
        self.initialized = False
        self.state = ProviderState.UNCONFIGURED
        self.log = logger.bind(component="analytics", provider=config.name)

    @property
    def name(self) -> str:
        return self.config.name

    # ------------------------------------------------------------------
    # Vendor hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _setup(self) -> dict | None:
        """Perform vendor setup. Return extra details for the success record."""
        pass

    @abstractmethod
    async def _identify(self, user_id: str, properties: dict) -> dict | None:
        pass

    @abstractmethod
    async def _track(self, event_name: str, properties: dict) -> dict | None:
        pass

    async def _page(self, page_name: str, properties: dict) -> dict | None:
        return await self._track(PAGE_VIEW_EVENT, {"page": page_name, **properties})

    def _status_details(self) -> dict:
        return {}

    # ------------------------------------------------------------------
    # Capability interface
    # ------------------------------------------------------------------

    async def initialize(self) -> Outcome:
        """Run one-time vendor setup. Marks the adapter initialized only on success."""
        self.state = ProviderState.INITIALIZING
        credential = mask_credential(self.config.credential)

        try:
            details = await self._setup() or {}
        except ProviderError as e:
            return self._initialize_failed(str(e), e.kind, credential)
        except Exception as e:
            return self._initialize_failed(str(e), ErrorKind.VENDOR_CALL_FAILED, credential)

        self.initialized = True
        self.state = ProviderState.INITIALIZED
        self._record(
            f"{self.display_name} initialized successfully",
            credential=credential,
            **details,
        )
        return Outcome.success(**details)

    def _initialize_failed(self, reason: str, kind: ErrorKind, credential: str) -> Outcome:
        self.state = ProviderState.DISABLED
        self._record(
            f"{self.display_name} initialization failed",
            error=reason,
            error_kind=kind.value,
            credential=credential,
        )
        self.log.warning("Provider initialization failed", error=reason, error_kind=kind.value)
        return Outcome.failure(reason, kind)

    async def identify_user(self, user_id: str, properties: dict | None = None) -> Outcome:
        """Associate subsequent activity with ``user_id``."""
        props = dict(properties or {})
        return await self._run(
            "user identification",
            "user identified",
            lambda: self._identify(user_id, props),
            user_id=user_id,
        )

    async def track_event(self, event_name: str, properties: dict | None = None) -> Outcome:
        """Forward a named event."""
        props = dict(properties or {})
        return await self._run(
            "event tracking",
            "event tracked",
            lambda: self._track(event_name, props),
            event_name=event_name,
        )

    async def track_page_view(self, page_name: str, properties: dict | None = None) -> Outcome:
        """Forward a page view."""
        props = dict(properties or {})
        return await self._run(
            "page view tracking",
            "page view tracked",
            lambda: self._page(page_name, props),
            page_name=page_name,
        )

    def get_status(self) -> ProviderStatus:
        """Current status. Safe to call at any time."""
        return ProviderStatus(
            name=self.name,
            enabled=self.config.enabled,
            initialized=self.initialized,
            credential_state=(
                CredentialState.CONFIGURED
                if self._credential_configured()
                else CredentialState.NOT_CONFIGURED
            ),
            state=self.state,
            details=self._status_details(),
        )

    def _credential_configured(self) -> bool:
        return self.config.has_credential

    async def close(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _run(
        self,
        action: str,
        done: str,
        call: Callable[[], Awaitable[dict | None]],
        **context: Any,
    ) -> Outcome:
        """Guard, invoke and record a vendor call."""
        if not self.initialized:
            self._record(f"{self.display_name} not initialized, skipping {action}", **context)
            return Outcome.not_initialized()

        try:
            details = await call() or {}
        except ProviderError as e:
            return self._call_failed(action, str(e), e.kind, {**context, **e.details})
        except Exception as e:
            return self._call_failed(action, str(e), ErrorKind.VENDOR_CALL_FAILED, context)

        self._record(f"{self.display_name} {done}", **{**context, **details})
        return Outcome.success(**details)

    def _call_failed(self, action: str, reason: str, kind: ErrorKind, context: dict) -> Outcome:
        self._record(f"{self.display_name} {action} failed", error=reason, **context)
        self.log.warning("Provider call failed", action=action, error=reason)
        return Outcome.failure(reason, kind)

    def _record(self, message: str, **data: Any) -> None:
        self.diagnostics.append(message, {"provider": self.name, **data})


class HttpAnalyticsProvider(AnalyticsProvider):
    """Adapter whose vendor handle is an HTTP ingestion API."""

    def __init__(
        self,
        config: ProviderConfig,
        diagnostics: DiagnosticLog,
        base_url: str,
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(config, diagnostics)
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout)

    def _require_credential(self, label: str = "API key") -> None:
        if not self.config.has_credential:
            raise ProviderError(f"{label} not configured", ErrorKind.CONFIGURATION_INVALID)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and fail the call on any non-2xx answer."""
        response = await self.http.request(method, f"{self.base_url}{path}", **kwargs)
        if response.status_code >= 400:
            raise ProviderError(f"{self.display_name} API error: HTTP {response.status_code}")
        return response

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_http:
            await self.http.aclose()
