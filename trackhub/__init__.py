"""trackhub: fan user analytics events out to multiple providers."""

from trackhub.diagnostics import DiagnosticLog, LogRecord
from trackhub.models import (
    ConnectionStatus,
    CredentialState,
    ErrorKind,
    Outcome,
    ProviderConfig,
    ProviderName,
    ProviderState,
    ProviderStatus,
    UserIdentity,
)
from trackhub.router import AnalyticsRouter, create_analytics_router

__version__ = "0.1.0"

__all__ = [
    "AnalyticsRouter",
    "create_analytics_router",
    "DiagnosticLog",
    "LogRecord",
    "ConnectionStatus",
    "CredentialState",
    "ErrorKind",
    "Outcome",
    "ProviderConfig",
    "ProviderName",
    "ProviderState",
    "ProviderStatus",
    "UserIdentity",
]
