"""
Analytics Router.

Fans every identify / track / page-view call out to all enabled analytics
providers at once, each with the same session id and timestamp merged into
the properties. One provider failing never affects the others: adapters
turn their failures into ``Outcome`` values and diagnostic records, and the
router's public methods never raise.

Lifecycle:
    router = create_analytics_router(get_settings())
    await router.initialize()          # once, at application startup
    router.track_event("purchase", {"amount": 9.99})
    router.get_connection_status()
    await router.close()               # at shutdown
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from trackhub.config import Settings, get_settings
from trackhub.diagnostics import DiagnosticLog, LogRecord
from trackhub.models import ConnectionStatus, Outcome, ProviderName, UserIdentity
from trackhub.providers import (
    AmplitudeProvider,
    AnalyticsProvider,
    BlitzllamaProvider,
    MixpanelProvider,
    VWOBridge,
    VWOProvider,
)
from trackhub.session import generate_session_id

logger = structlog.get_logger(__name__)


class AnalyticsRouter:
    """
    Multi-provider event router for one browsing session.

    Provider states:
        UNCONFIGURED -> INITIALIZING -> INITIALIZED
        UNCONFIGURED -> INITIALIZING -> DISABLED  (enabled flipped to False)

    Both end states are final for the router's lifetime. Calls to a single
    provider are delivered in the order they were issued; there is no
    ordering between providers.
    """

    def __init__(self, providers: Iterable[AnalyticsProvider], diagnostics: DiagnosticLog):
        """
        Initialize the router.

        Args:
            providers: Adapters to fan out to. They must share ``diagnostics``.
            diagnostics: Diagnostic log; its session id becomes the router's session id.
        """
        self.providers: list[AnalyticsProvider] = list(providers)
        self.diagnostics = diagnostics
        self.session_id = diagnostics.session_id
        self.is_initialized = False
        self._initialize_started = False
        self._locks = {provider.name: asyncio.Lock() for provider in self.providers}
        self._pending: set[asyncio.Task] = set()
        self.log = logger.bind(component="analytics_router", session_id=self.session_id)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        vwo_bridge: VWOBridge | None = None,
        session_id: str | None = None,
    ) -> "AnalyticsRouter":
        """Build a router with one adapter per configured provider."""
        diagnostics = DiagnosticLog(session_id or generate_session_id())
        configs = settings.provider_configs()
        timeout = settings.http_timeout_seconds

        providers = [
            AmplitudeProvider(
                configs[ProviderName.AMPLITUDE.value],
                diagnostics,
                base_url=settings.amplitude_base_url,
                timeout=timeout,
            ),
            MixpanelProvider(
                configs[ProviderName.MIXPANEL.value],
                diagnostics,
                base_url=settings.mixpanel_base_url,
                timeout=timeout,
            ),
            BlitzllamaProvider(
                configs[ProviderName.BLITZLLAMA.value],
                diagnostics,
                base_url=settings.blitzllama_base_url,
                timeout=timeout,
            ),
            VWOProvider(
                configs[ProviderName.VWO.value],
                diagnostics,
                bridge=vwo_bridge,
                poll_interval=settings.vwo_poll_interval_seconds,
                ready_timeout=settings.vwo_ready_timeout_seconds,
            ),
        ]
        return cls(providers, diagnostics)

    def get_provider(self, name: str) -> AnalyticsProvider | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    @property
    def enabled_providers(self) -> list[AnalyticsProvider]:
        return [provider for provider in self.providers if provider.config.enabled]

    # =========================================================================
    # Initialization
    # =========================================================================

    async def initialize(self) -> None:
        """
        Initialize every enabled provider concurrently and wait for all of them.

        A provider whose initialization fails is disabled for the rest of the
        router's lifetime. The router itself always ends up initialized, even
        if every provider failed. Only the first call does anything.
        """
        if self._initialize_started:
            self.log.warning("Analytics router initialize called more than once; ignoring")
            return
        self._initialize_started = True

        targets = self.enabled_providers
        self.log.info(
            "Initializing analytics services",
            providers=[provider.name for provider in targets],
        )

        outcomes = await asyncio.gather(
            *(self._initialize_provider(provider) for provider in targets)
        )

        self.is_initialized = True
        self.log.info(
            "Analytics services initialized",
            healthy=[p.name for p, o in zip(targets, outcomes) if o.ok],
            disabled=[p.name for p, o in zip(targets, outcomes) if not o.ok],
        )

    async def _initialize_provider(self, provider: AnalyticsProvider) -> Outcome:
        async with self._locks[provider.name]:
            try:
                outcome = await provider.initialize()
            except Exception as e:
                self.log.exception("Provider initialize raised", provider=provider.name)
                outcome = Outcome.failure(str(e))

        if not outcome.ok:
            provider.config.enabled = False
        return outcome

    # =========================================================================
    # Fan-out
    # =========================================================================

    def _with_session(self, properties: dict[str, Any] | None) -> dict[str, Any]:
        return {
            **(properties or {}),
            "session_id": self.session_id,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    def identify_user(self, user_id: str, properties: dict[str, Any] | None = None) -> None:
        """Identify ``user_id`` with every enabled provider. Returns immediately."""
        merged = self._with_session(properties)
        self.log.debug("Identifying user across all services", user_id=user_id)
        self._fan_out("identify_user", lambda provider: provider.identify_user(user_id, merged))

    def identify(self, identity: UserIdentity) -> None:
        """Identify a signed-in user handed over by the auth layer."""
        self.identify_user(identity.id, identity.traits())

    def track_event(self, event_name: str, properties: dict[str, Any] | None = None) -> None:
        """Track ``event_name`` with every enabled provider. Returns immediately."""
        merged = self._with_session(properties)
        self.log.debug("Tracking event across all services", event_name=event_name)
        self._fan_out("track_event", lambda provider: provider.track_event(event_name, merged))

    def track_page_view(self, page_name: str, properties: dict[str, Any] | None = None) -> None:
        """Track a view of ``page_name`` with every enabled provider. Returns immediately."""
        merged = self._with_session(properties)
        self.log.debug("Tracking page view across all services", page_name=page_name)
        self._fan_out(
            "track_page_view",
            lambda provider: provider.track_page_view(page_name, merged),
        )

    def _fan_out(
        self,
        operation: str,
        call: Callable[[AnalyticsProvider], Awaitable[Outcome]],
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.diagnostics.append(
                "Dispatch skipped: no running event loop",
                {"operation": operation},
            )
            self.log.error("Analytics dispatch outside an event loop", operation=operation)
            return

        for provider in self.enabled_providers:
            task = loop.create_task(self._dispatch(provider, operation, call))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _dispatch(
        self,
        provider: AnalyticsProvider,
        operation: str,
        call: Callable[[AnalyticsProvider], Awaitable[Outcome]],
    ) -> Outcome:
        # The per-provider lock keeps calls to one provider in issue order.
        async with self._locks[provider.name]:
            try:
                return await call(provider)
            except Exception as e:
                self.log.exception("Provider call raised", provider=provider.name, operation=operation)
                return Outcome.failure(str(e))

    async def flush(self) -> None:
        """Wait until every dispatched call has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # =========================================================================
    # Status & diagnostics
    # =========================================================================

    def get_connection_status(self) -> ConnectionStatus:
        """Read-only snapshot of the router and every provider."""
        return ConnectionStatus(
            session_id=self.session_id,
            is_initialized=self.is_initialized,
            services={provider.name: provider.get_status() for provider in self.providers},
        )

    def get_logs(self) -> tuple[LogRecord, ...]:
        return self.diagnostics.snapshot()

    def clear_logs(self) -> None:
        self.diagnostics.clear()

    # =========================================================================
    # Teardown
    # =========================================================================

    async def close(self) -> None:
        """Flush in-flight calls and release every provider's resources."""
        await self.flush()
        for provider in self.providers:
            await provider.close()
        self.log.info("Analytics router closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_analytics_router(
    settings: Settings | None = None,
    vwo_bridge: VWOBridge | None = None,
) -> AnalyticsRouter:
    """
    Factory function for AnalyticsRouter.

    Args:
        settings: Settings to read provider credentials from (defaults to env)
        vwo_bridge: Bridge the host attaches the VWO SmartCode handle to

    Returns:
        AnalyticsRouter with a fresh session id
    """
    return AnalyticsRouter.from_settings(settings or get_settings(), vwo_bridge=vwo_bridge)
