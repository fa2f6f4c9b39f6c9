"""
Analytics API

Lets UI and dashboard clients feed events into the router and read back
its connection status and diagnostic log.

Endpoints:
    POST   /analytics/events       track a custom event
    POST   /analytics/page-views   track a page view
    POST   /analytics/identify     identify the signed-in user
    GET    /analytics/status       connection status of every provider
    GET    /analytics/logs         diagnostic log (newest ``limit`` records)
    DELETE /analytics/logs         clear the diagnostic log
"""

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from trackhub.models import UserIdentity
from trackhub.router import AnalyticsRouter

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


# =============================================================================
# Request/Response Models
# =============================================================================


class EventPayload(BaseModel):
    """Request payload for tracking an event."""

    name: str = Field(..., min_length=1, description="Event name")
    properties: dict[str, Any] = Field(default_factory=dict, description="Event properties")


class PageViewPayload(BaseModel):
    """Request payload for tracking a page view."""

    page_name: str = Field(..., min_length=1, description="Page identifier")
    properties: dict[str, Any] = Field(default_factory=dict, description="Page view properties")


class IdentifyPayload(BaseModel):
    """Request payload for identifying a user."""

    id: str = Field(..., description="User ID")
    email: str | None = Field(None, description="User email")
    name: str | None = Field(None, description="Display name")
    role: str | None = Field(None, description="User role")


class DispatchResponse(BaseModel):
    """Returned once a call has been handed to the providers."""

    accepted: bool
    session_id: str
    providers: list[str]


class LogsResponse(BaseModel):
    """Diagnostic log tail."""

    session_id: str
    total: int
    logs: list[dict[str, Any]]


# =============================================================================
# Dependencies
# =============================================================================


def get_analytics_router(request: Request) -> AnalyticsRouter:
    """Return the router created at application startup."""
    analytics = getattr(request.app.state, "analytics_router", None)
    if analytics is None:
        raise HTTPException(status_code=503, detail="Analytics router not available")
    return analytics


def _accepted(analytics: AnalyticsRouter) -> DispatchResponse:
    return DispatchResponse(
        accepted=True,
        session_id=analytics.session_id,
        providers=[provider.name for provider in analytics.enabled_providers],
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/events", response_model=DispatchResponse, status_code=202)
async def track_event(
    payload: EventPayload,
    analytics: AnalyticsRouter = Depends(get_analytics_router),
):
    """Track a custom event with every enabled provider."""
    analytics.track_event(payload.name, payload.properties)
    return _accepted(analytics)


@router.post("/page-views", response_model=DispatchResponse, status_code=202)
async def track_page_view(
    payload: PageViewPayload,
    analytics: AnalyticsRouter = Depends(get_analytics_router),
):
    """Track a page view with every enabled provider."""
    analytics.track_page_view(payload.page_name, payload.properties)
    return _accepted(analytics)


@router.post("/identify", response_model=DispatchResponse, status_code=202)
async def identify(
    payload: IdentifyPayload,
    analytics: AnalyticsRouter = Depends(get_analytics_router),
):
    """Identify the signed-in user with every enabled provider."""
    analytics.identify(UserIdentity(**payload.model_dump()))
    return _accepted(analytics)


@router.get("/status")
async def get_status(analytics: AnalyticsRouter = Depends(get_analytics_router)):
    """Connection status of the router and each provider."""
    return analytics.get_connection_status().to_dict()


@router.get("/logs", response_model=LogsResponse)
async def get_logs(
    limit: int = Query(50, ge=1, le=1000, description="Number of newest records to return"),
    analytics: AnalyticsRouter = Depends(get_analytics_router),
):
    """Newest diagnostic records, oldest first."""
    return LogsResponse(
        session_id=analytics.session_id,
        total=len(analytics.diagnostics),
        logs=[asdict(record) for record in analytics.diagnostics.tail(limit)],
    )


@router.delete("/logs", status_code=204)
async def clear_logs(analytics: AnalyticsRouter = Depends(get_analytics_router)):
    """Clear the diagnostic log."""
    analytics.clear_logs()
    logger.info("Diagnostic log cleared", session_id=analytics.session_id)
