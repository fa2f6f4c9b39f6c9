"""FastAPI application for the analytics fan-out service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from trackhub.api.analytics import router as analytics_router
from trackhub.config import Settings, get_settings
from trackhub.providers import VWOBridge
from trackhub.router import AnalyticsRouter
from trackhub.utils.logging import configure_logging, get_logger

logger = get_logger(__name__, component="server")


def create_app(
    settings: Settings | None = None,
    analytics: AnalyticsRouter | None = None,
    vwo_bridge: VWOBridge | None = None,
) -> FastAPI:
    """
    Build the application.

    The analytics router is created and initialized on startup and closed
    on shutdown. Pass ``analytics`` to use a pre-built router instead.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or get_settings()
        configure_logging(level=app_settings.log_level, json_format=app_settings.log_json)

        router = analytics or AnalyticsRouter.from_settings(app_settings, vwo_bridge=vwo_bridge)
        app.state.analytics_router = router
        await router.initialize()
        logger.info("Analytics service started", session_id=router.session_id)
        try:
            yield
        finally:
            await router.close()
            app.state.analytics_router = None

    app = FastAPI(
        title="trackhub",
        description="Fan-out of user analytics events to multiple providers",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(analytics_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
