"""Configuration settings for cratedocs.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_db_url() -> str:
    """Return the default database URL (SQLite)."""
    db_path = Path.home() / ".local" / "share" / "cratedocs" / "db.sqlite"
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the CRATEDOCS_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRATEDOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_url: str = Field(
        default_factory=_default_db_url,
        description="Database connection URL",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Rebuild trigger
    cratesio_token: str | None = Field(
        default=None,
        description="Shared secret for the rebuild endpoint (disabled if unset)",
    )

    # Build queue
    build_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts before a queued build stops counting as pending",
    )
    queue_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Worker threads for blocking build queue operations",
    )

    # HTTP caching
    cdn_max_age: int = Field(
        default=31536000,
        ge=0,
        description="Shared cache lifetime (seconds) for immutable redirects",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    The rebuild token is masked.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    masked = settings.model_copy(
        update={"cratesio_token": "***" if settings.cratesio_token else None}
    )
    return masked.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
