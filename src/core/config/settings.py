# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the tenant
schema aligner. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings().

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.alignment.max_concurrency)
    1
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.schema.naming import is_safe_identifier

_DEFAULT_DB_PASSWORD = "tenant_aligner_password"


class DatabaseSettings(BaseSettings):
    """Database holding the tenant namespaces.

    Attributes:
        user: PostgreSQL username. Needs CREATE on the database and
            ownership of the tenant namespaces.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        dsn: Full connection URL; overrides the components when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "postgres"
    password: SecretStr = SecretStr(_DEFAULT_DB_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "app"
    dsn: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = 5
    max_overflow: int = 5

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.dsn:
            return self.dsn
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RegistrySettings(BaseSettings):
    """Location and shape of the tenant registry table.

    Attributes:
        url: Database URL of the registry; defaults to the tenant database.
        schema_name: Schema holding the registry table.
        table: Registry table name.
        id_column: Tenant identifier column.
        namespace_column: Stored namespace name column.
        active_column: Active flag column.
        created_column: Creation timestamp column, used for ordering.
        name_column: Display name column.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_",
        extra="ignore",
    )

    url: str | None = None
    schema_name: str = "public"
    table: str = "tenants"
    id_column: str = "id"
    namespace_column: str = "schema_name"
    active_column: str = "is_active"
    created_column: str = "created_at"
    name_column: str = "name"

    @field_validator(
        "schema_name",
        "table",
        "id_column",
        "namespace_column",
        "active_column",
        "created_column",
        "name_column",
    )
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Ensure registry names are plain lowercase identifiers."""
        if not is_safe_identifier(value):
            raise ValueError(f"Invalid registry identifier: {value!r}")
        return value


class AlignmentSettings(BaseSettings):
    """Batch alignment behavior.

    Attributes:
        max_concurrency: Tenants processed at the same time. 1 runs
            tenants strictly one after another.
        tenant_timeout_seconds: Upper bound for one tenant; a tenant that
            exceeds it is reported as failed.
        lock_timeout_ms: Session lock_timeout for DDL; 0 disables it.
        active_only: Skip tenants flagged inactive in the registry.
        dry_run: Plan statements without executing them.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALIGN_",
        extra="ignore",
    )

    max_concurrency: int = Field(default=1, ge=1)
    tenant_timeout_seconds: float = Field(default=300.0, gt=0)
    lock_timeout_ms: int = Field(default=5000, ge=0)
    active_only: bool = True
    dry_run: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode (also echoes SQL).
        log_level: Logging level.
        database: Tenant database settings.
        registry: Tenant registry settings.
        alignment: Batch alignment settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    alignment: AlignmentSettings = Field(default_factory=AlignmentSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production" and not self.database.dsn:
            if self.database.password.get_secret_value() == _DEFAULT_DB_PASSWORD:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD or DATABASE_URL environment variable."
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

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
