"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    kaspa_rpc_url: str = "http://127.0.0.1:18110"
    kaspa_fallback_rpc_url: str = "https://api.kaspa.org"
    kaspa_rest_url: str = "https://api.kaspa.org"
    rpc_max_retries: int = 3
    rpc_backoff_base_seconds: float = 0.3
    rpc_timeout_seconds: float = 10
    sendgrid_api_key: str | None = None
    sendgrid_from: str | None = None
    frontend_base_url: str = "http://localhost:5173"
    tent_store: str = "file"
    tent_store_path: str = "data/tents.json"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    cors_allowed_origins: str = "*"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 5000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str) -> list[str]:
    """Parse a comma-separated CORS origin list from env."""
    origins = [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
    return origins or ["*"]
