"""Configuration management for the analytics fan-out service."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from trackhub.models import ProviderConfig, ProviderName

# Mixpanel ships its sample apps with this token; treat it as "not configured".
MIXPANEL_PLACEHOLDER_TOKEN = "YOUR_MIXPANEL_TOKEN"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Provider credentials
    amplitude_api_key: SecretStr = Field(SecretStr(""), description="Amplitude project API key")
    mixpanel_token: SecretStr = Field(
        SecretStr(MIXPANEL_PLACEHOLDER_TOKEN),
        description="Mixpanel project token"
    )
    blitzllama_api_key: SecretStr = Field(SecretStr(""), description="Blitzllama API key")
    vwo_account_id: str = Field("", description="VWO account ID (SmartCode)")

    # Provider enable flags
    amplitude_enabled: bool = Field(True, description="Forward events to Amplitude")
    mixpanel_enabled: bool = Field(False, description="Forward events to Mixpanel (needs a real token)")
    blitzllama_enabled: bool = Field(True, description="Forward events to Blitzllama")
    vwo_enabled: bool = Field(True, description="Forward events to VWO")

    # Vendor endpoints
    amplitude_base_url: str = Field("https://api2.amplitude.com", description="Amplitude ingestion host")
    mixpanel_base_url: str = Field("https://api.mixpanel.com", description="Mixpanel ingestion host")
    blitzllama_base_url: str = Field("https://api.blitzllama.com", description="Blitzllama REST host")

    # VWO readiness polling
    vwo_poll_interval_seconds: float = Field(0.1, description="Interval between VWO readiness checks")
    vwo_ready_timeout_seconds: float = Field(10.0, description="Give up waiting for VWO after this long")

    # Transport
    http_timeout_seconds: float = Field(10.0, description="Timeout for vendor HTTP calls")

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_json: bool = Field(False, description="Emit JSON logs instead of console output")

    def provider_configs(self) -> dict[str, ProviderConfig]:
        """Build the provider registry from these settings."""
        return {
            ProviderName.AMPLITUDE.value: ProviderConfig(
                name=ProviderName.AMPLITUDE.value,
                credential=self.amplitude_api_key.get_secret_value(),
                enabled=self.amplitude_enabled,
            ),
            ProviderName.MIXPANEL.value: ProviderConfig(
                name=ProviderName.MIXPANEL.value,
                credential=self.mixpanel_token.get_secret_value(),
                enabled=self.mixpanel_enabled,
            ),
            ProviderName.BLITZLLAMA.value: ProviderConfig(
                name=ProviderName.BLITZLLAMA.value,
                credential=self.blitzllama_api_key.get_secret_value(),
                enabled=self.blitzllama_enabled,
            ),
            ProviderName.VWO.value: ProviderConfig(
                name=ProviderName.VWO.value,
                credential=self.vwo_account_id,
                enabled=self.vwo_enabled,
            ),
        }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
