"""
Load settings from environment / .env. Never log or expose secret values.
Built once at startup and passed explicitly to each component; nothing else reads the environment.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVICE_NAME = "mcp-weather-server"
SERVICE_VERSION = "1.0.0"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream weather API
    openweather_api_key: str = Field(min_length=1, description="OpenWeatherMap API key (required)")
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap API base URL",
    )
    upstream_timeout: Optional[float] = Field(
        default=None, gt=0, description="Upstream request timeout in seconds (unset: HTTP client default)"
    )

    # Transport
    deployment_mode: Literal["stdio", "cloud"] = Field(
        default="stdio", description="stdio = process pipe, cloud = HTTP/SSE server"
    )
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=3000, ge=1, le=65535, description="HTTP port")
    allowed_origins: str = Field(default="*", description="Comma-separated CORS origins")
    sse_keepalive_seconds: float = Field(default=15.0, gt=0, description="Idle interval between SSE keepalive comments")

    # Auth
    require_auth: bool = Field(default=False, description="Enforce token authentication on HTTP endpoints")
    api_keys: str = Field(default="", description="Comma-separated legacy API keys")
    pat_tokens: str = Field(default="", description="Comma-separated personal access tokens")
    accept_structured_tokens: bool = Field(
        default=False, description="Accept unlisted tokens of the mcp_<env>_<payload> shape"
    )

    # App
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Log level")

    @property
    def accepted_tokens(self) -> frozenset[str]:
        return frozenset(_split_csv(self.api_keys) + _split_csv(self.pat_tokens))

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.allowed_origins) or ["*"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
