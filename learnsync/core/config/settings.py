# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables with sensible defaults.
The Settings class aggregates all subsettings and a cached instance is
provided via get_settings() for dependency injection.

Example:
    >>> from learnsync.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.data_manager.max_retries
    3
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """LMS database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        statement_timeout_ms: Server-side statement timeout. Statements
            cancelled by it are treated as transient by the executor.
        auto_create_schema: Create missing tables on startup.
        url_override: Full URL that replaces the one built from components.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "learnsync"
    password: SecretStr = SecretStr("learnsync_password")
    host: str = "learnsync-db"
    port: int = 5432
    database: str = "learnsync"
    pool_size: int = 10
    max_overflow: int = 20
    statement_timeout_ms: int = 15000
    auto_create_schema: bool = False
    url_override: str | None = Field(default=None, validation_alias="DATABASE_URL")

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_postgres(self) -> bool:
        """Check whether the configured URL targets PostgreSQL."""
        return self.url.startswith("postgresql")


class DataManagerSettings(BaseSettings):
    """Operation executor configuration.

    Attributes:
        max_retries: Retry budget for transient failures, per operation.
        retry_base_delay: First backoff delay in seconds. Doubles per attempt.
        retry_max_delay: Upper bound for a single backoff delay in seconds.
        retain_processed_requests: Keep approved/rejected access requests
            with their terminal status. When False they are deleted once
            processed.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATA_MANAGER_",
        extra="ignore",
    )

    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=0.1, ge=0)
    retry_max_delay: float = Field(default=2.0, ge=0)
    retain_processed_requests: bool = True


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 34100
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode. Also controls whether internal error
            details are attached to failed operation results.
        log_level: Logging level.
        database: Database settings.
        data_manager: Operation executor settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    data_manager: DataManagerSettings = Field(default_factory=DataManagerSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with debug enabled.
        """
        if self.environment == "production" and self.debug:
            raise ValueError(
                "Debug mode must be disabled in production. "
                "Set DEBUG=false environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
