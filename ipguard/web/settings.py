"""HTTP-facing settings using Pydantic BaseSettings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """
    Settings for the FastAPI helpers.

    Settings can be configured via environment variables with the prefix
    IPGUARD_API_, for example IPGUARD_API_TRUSTED_PROXY_COUNT=1.

    Attributes:
        trusted_proxy_count: Number of trusted proxies for X-Forwarded-For parsing (default: 0)
        retry_after_header: Send a Retry-After header with 429 responses
    """

    model_config = SettingsConfigDict(
        env_prefix="IPGUARD_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    trusted_proxy_count: int = 0
    retry_after_header: bool = True


@lru_cache
def get_settings() -> APISettings:
    """Get cached API settings instance."""
    return APISettings()
