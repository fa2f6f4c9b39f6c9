"""Core data model shared by the router and the provider adapters."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ProviderName(str, Enum):
    """Analytics backends the router knows how to reach."""
    AMPLITUDE = "amplitude"
    MIXPANEL = "mixpanel"
    BLITZLLAMA = "blitzllama"
    VWO = "vwo"


class ProviderState(str, Enum):
    """Lifecycle of one provider inside a router.

    UNCONFIGURED -> INITIALIZING -> INITIALIZED
    UNCONFIGURED -> INITIALIZING -> DISABLED
    """
    UNCONFIGURED = "unconfigured"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    DISABLED = "disabled"


class ErrorKind(str, Enum):
    """Why an adapter operation failed."""
    NOT_INITIALIZED = "not_initialized"
    VENDOR_CALL_FAILED = "vendor_call_failed"
    CONFIGURATION_INVALID = "configuration_invalid"


class CredentialState(str, Enum):
    CONFIGURED = "configured"
    NOT_CONFIGURED = "not configured"


@dataclass(frozen=True)
class Outcome:
    """Result of one adapter operation. Adapters return these instead of raising."""
    ok: bool
    reason: str | None = None
    kind: ErrorKind | None = None
    data: dict = field(default_factory=dict)

    @classmethod
    def success(cls, **data: Any) -> "Outcome":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, reason: str, kind: ErrorKind = ErrorKind.VENDOR_CALL_FAILED) -> "Outcome":
        return cls(ok=False, reason=reason, kind=kind)

    @classmethod
    def not_initialized(cls) -> "Outcome":
        return cls(ok=False, reason="Not initialized", kind=ErrorKind.NOT_INITIALIZED)

    @property
    def failed(self) -> bool:
        return not self.ok


@dataclass
class ProviderConfig:
    """Credentials and enable flag for one provider.

    The router owns its copy and may flip ``enabled`` to False when the
    provider fails to initialize. It is never flipped back.
    """
    name: str
    credential: str
    enabled: bool = True

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())


@dataclass(frozen=True)
class ProviderStatus:
    """Point-in-time status of one provider adapter."""
    name: str
    enabled: bool
    initialized: bool
    credential_state: CredentialState
    state: ProviderState
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ConnectionStatus:
    """Snapshot returned by ``AnalyticsRouter.get_connection_status``."""
    session_id: str
    is_initialized: bool
    services: dict[str, ProviderStatus]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UserIdentity:
    """A signed-in user as handed over by the auth layer."""
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None

    def traits(self) -> dict[str, Any]:
        """User properties forwarded alongside the identifier."""
        return {
            key: value
            for key, value in (("email", self.email), ("name", self.name), ("role", self.role))
            if value is not None
        }
