"""Analytics backend adapters.

Provides:
- Amplitude product analytics
- Mixpanel events and people profiles
- Blitzllama surveys
- VWO experiments (via the SmartCode handle)
"""

from .amplitude import AmplitudeProvider
from .base import (
    PAGE_VIEW_EVENT,
    AnalyticsProvider,
    HttpAnalyticsProvider,
    ProviderError,
    mask_credential,
)
from .blitzllama import BlitzllamaProvider
from .mixpanel import MixpanelProvider
from .vwo import VWOBridge, VWOHandle, VWOProvider

__all__ = [
    "PAGE_VIEW_EVENT",
    "AnalyticsProvider",
    "HttpAnalyticsProvider",
    "ProviderError",
    "mask_credential",
    "AmplitudeProvider",
    "BlitzllamaProvider",
    "MixpanelProvider",
    "VWOBridge",
    "VWOHandle",
    "VWOProvider",
]
