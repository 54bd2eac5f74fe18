"""
Catalog application configuration using Pydantic Settings.

Every setting can be overridden with an environment variable prefixed
``LOCAL_LIBRARY_`` (e.g. ``LOCAL_LIBRARY_MONGODB_URL``) or from a ``.env``
file in the working directory.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Settings of the catalog web application."""

    # =========================================================================
    # Application
    # =========================================================================

    app_name: str = "Local Library"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, description="Run uvicorn with auto-reload on code changes")
    environment: Literal["development", "staging", "production"] = "production"

    host: str = "0.0.0.0"
    port: int = Field(default=3000, gt=0, lt=65536)

    # =========================================================================
    # Document store (MongoDB)
    # =========================================================================

    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string (mongodb:// or mongodb+srv://)"
    )
    mongodb_database: str = Field(
        default="local_library",
        description="Database holding the authors, books, bookinstances and genres collections"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000,
        description="How long the driver waits for a usable server before failing a request",
        gt=0
    )

    # =========================================================================
    # HTTP responses, logging and monitoring
    # =========================================================================

    security_headers_enabled: bool = True
    log_level: LogLevel = "INFO"
    log_format: Literal["json", "text"] = "json"
    metrics_enabled: bool = Field(default=True, description="Expose Prometheus metrics at /metrics")

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", "environment", "log_format", mode="before")
    @classmethod
    def normalize_case(cls, v, info):
        """Accept choices in any case (``info`` and ``INFO`` are the same level)."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == "log_level" else v.lower()

    @field_validator("mongodb_url")
    @classmethod
    def validate_mongodb_url(cls, v: str) -> str:
        """Reject connection strings the driver would not understand."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"mongodb_url must start with mongodb:// or mongodb+srv://, got: {v}")
        return v

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get the cached settings instance.

    Returns:
        Settings: Loaded once per process and shared by every module

    Example:
        >>> from catalog.src.config import get_settings
        >>> get_settings().mongodb_database
        'local_library'
    """
    return Settings()


def clear_settings_cache():
    """Forget the cached settings so the next ``get_settings`` call reloads them."""
    get_settings.cache_clear()
