"""Configuration module using Pydantic Settings."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Attributes:
        host: Host address for the server.
        port: Port number for the server.
        database_url: SQLite database URL.
        cors_origins: Allowed CORS origins.
        debug: Enable debug mode.
        log_level: Logging level name.
        auth_jwt_secret: Shared secret for admin/CI bearer tokens.
        rate_limit_public: Requests per window for update checks.
        rate_limit_admin: Requests per window for the admin API.
        rate_limit_ci: Requests per window for the CI API.
        rate_limit_window_seconds: Length of a rate-limit window.
        rate_limit_sweep_interval_seconds: Interval of the stale-entry sweep.
        trust_forwarded_headers: Derive client IPs from proxy headers.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="server_host", description="Server host address")
    port: int = Field(default=4030, alias="server_port", description="Server port")

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./data/updates.db",
        description="Database connection URL",
    )

    # Authentication
    auth_jwt_secret: str = Field(
        default="",
        description="Shared secret (HS256) for admin and CI API tokens",
    )

    # Rate Limiting
    rate_limit_public: int = Field(default=60, ge=1, description="Update checks per window")
    rate_limit_admin: int = Field(default=100, ge=1, description="Admin requests per window")
    rate_limit_ci: int = Field(default=30, ge=1, description="CI requests per window")
    rate_limit_window_seconds: int = Field(default=60, ge=1, description="Window length")
    rate_limit_sweep_interval_seconds: int = Field(
        default=300,
        ge=1,
        description="Interval of the background sweep purging stale entries",
    )
    trust_forwarded_headers: bool = Field(
        default=True,
        description="Use X-Forwarded-For and CDN headers for client IPs",
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="List of allowed CORS origins",
    )

    # Debug Mode
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="info", description="Logging level")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> str:
        if not v or not isinstance(v, str):
            return "info"
        return v.strip().lower()

    @property
    def rate_limit_window_ms(self) -> int:
        """Rate-limit window in milliseconds."""
        return self.rate_limit_window_seconds * 1000


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
