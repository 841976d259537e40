"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MARKETPLACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Campus Marketplace"
    version: str = "1.0.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, description="Server port")

    # Paths
    config_path: Path = Field(
        default=Path("./data"),
        description="Directory holding the SQLite database file",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Database connection URL (defaults to SQLite under config_path)",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Authentication
    jwt_secret_key: str = Field(
        default="dev-only-marketplace-signing-key-change-me",
        description="Signing key for student session tokens",
    )
    admin_jwt_secret_key: str | None = Field(
        default=None,
        description="Signing key for admin tokens (derived from jwt_secret_key when unset)",
    )
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        description="Student token lifetime in minutes (7 days)",
    )
    admin_token_expire_minutes: int = Field(
        default=60 * 8,
        description="Admin token lifetime in minutes (8 hours)",
    )

    # Settings cache
    settings_cache_ttl: float = Field(
        default=60.0,
        gt=0,
        description="Seconds a decoded system setting stays cached",
    )

    @property
    def effective_admin_jwt_secret(self) -> str:
        """Get the admin signing key, falling back to a derivative of the user key."""
        return self.admin_jwt_secret_key or f"{self.jwt_secret_key}_admin"

    @property
    def db_path(self) -> Path:
        """Get the SQLite database file path."""
        return self.config_path / "marketplace.db"


# Global settings instance
settings = Settings()
