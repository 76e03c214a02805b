#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
offline-resilient client cache. Every tunable (namespace tag, TTL tiers,
sweeper bounds, throttle windows, storage backends) lives here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Grouped views (settings.cache, settings.sweeper, ...) for readable call sites
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """
    Namespace and TTL configuration for the cache store.

    STAGE-0.1: Cache namespace configuration

    TTL tiers are expressed in milliseconds to match the stored envelope.
    """

    CACHE_PREFIX: str = Field(default="golf_app", description="Application cache prefix")
    CACHE_VERSION: str = Field(default="v1.0.0", description="Version tag embedded in every key")
    CACHE_TTL_SHORT_MS: int = Field(default=5 * 60 * 1000, description="Short TTL tier (5 minutes)")
    CACHE_TTL_MEDIUM_MS: int = Field(default=30 * 60 * 1000, description="Medium TTL tier (30 minutes)")
    CACHE_TTL_LONG_MS: int = Field(default=24 * 60 * 60 * 1000, description="Long TTL tier (24 hours)")
    CACHE_TTL_WEEK_MS: int = Field(default=7 * 24 * 60 * 60 * 1000, description="Week TTL tier (7 days)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class SweeperSettings(BaseSettings):
    """
    Maintenance sweeper bounds.

    STAGE-0.2: Sweeper configuration

    Once a tier holds more than SWEEP_CEILING entries it is trimmed back to
    SWEEP_FLOOR, newest entries retained.
    """

    SWEEP_CEILING: int = Field(default=50, description="Entry count that triggers eviction")
    SWEEP_FLOOR: int = Field(default=30, description="Entry count retained after eviction")
    SWEEP_INTERVAL_S: float = Field(default=3600.0, description="Periodic maintenance interval (0 disables)")
    PRUNE_FRACTION: float = Field(default=0.2, description="Share of entries pruned on quota errors")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RevalidationSettings(BaseSettings):
    """
    Stale-while-revalidate and connectivity behavior.

    STAGE-0.3: Revalidation configuration
    """

    FETCH_MIN_INTERVAL_MS: int = Field(
        default=10_000, description="Minimum gap between foreground fetches of one key"
    )
    BACKGROUND_REFRESH_INTERVAL_S: float = Field(
        default=300.0, description="Periodic background refresh of displayed keys (0 disables)"
    )
    HARD_ERROR_RETRY_DELAY_S: float = Field(
        default=5.0, description="Automatic retry after a hard error (0 disables)"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class StorageSettings(BaseSettings):
    """
    Storage backend selection.

    STAGE-0.4: Storage backend configuration
    """

    CACHE_DURABLE_BACKEND: Literal["file", "redis", "memory"] = Field(
        default="file", description="Backend for the durable tier"
    )
    CACHE_DURABLE_PATH: str = Field(
        default=".fairway_cache.json", description="File used by the file backend"
    )
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis URL for the redis backend")
    STORAGE_QUOTA_BYTES: int | None = Field(
        default=5 * 1024 * 1024, description="Byte quota per local backend (None disables)"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class HttpFetchSettings(BaseSettings):
    """
    Defaults for the HTTP fetch helper.

    STAGE-0.5: Remote fetch configuration
    """

    HTTP_TIMEOUT_S: float = Field(default=10.0, description="Request timeout in seconds")
    HTTP_RETRIES: int = Field(default=2, description="Retries after the first attempt")
    HTTP_RETRY_DELAY_S: float = Field(default=0.3, description="Initial backoff delay")
    HTTP_RETRY_MAX_DELAY_S: float = Field(default=5.0, description="Backoff ceiling")
    HTTP_BASE_URL: str = Field(default="", description="Prefix for relative request URLs")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration

    Architectural Decision: structlog for production-grade logging
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Fairway Community", description="Application name")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from fairway_cache.core.config.settings import get_settings

        settings = get_settings()
        prefix = settings.cache.CACHE_PREFIX
        ceiling = settings.sweeper.SWEEP_CEILING
    """

    # Cache namespace & TTL tiers
    CACHE_PREFIX: str = Field(default="golf_app", description="Application cache prefix")
    CACHE_VERSION: str = Field(default="v1.0.0", description="Version tag embedded in every key")
    CACHE_TTL_SHORT_MS: int = Field(default=5 * 60 * 1000, description="Short TTL tier (5 minutes)")
    CACHE_TTL_MEDIUM_MS: int = Field(default=30 * 60 * 1000, description="Medium TTL tier (30 minutes)")
    CACHE_TTL_LONG_MS: int = Field(default=24 * 60 * 60 * 1000, description="Long TTL tier (24 hours)")
    CACHE_TTL_WEEK_MS: int = Field(default=7 * 24 * 60 * 60 * 1000, description="Week TTL tier (7 days)")

    # Sweeper
    SWEEP_CEILING: int = Field(default=50, description="Entry count that triggers eviction")
    SWEEP_FLOOR: int = Field(default=30, description="Entry count retained after eviction")
    SWEEP_INTERVAL_S: float = Field(default=3600.0, description="Periodic maintenance interval (0 disables)")
    PRUNE_FRACTION: float = Field(default=0.2, description="Share of entries pruned on quota errors")

    # Revalidation
    FETCH_MIN_INTERVAL_MS: int = Field(
        default=10_000, description="Minimum gap between foreground fetches of one key"
    )
    BACKGROUND_REFRESH_INTERVAL_S: float = Field(
        default=300.0, description="Periodic background refresh of displayed keys (0 disables)"
    )
    HARD_ERROR_RETRY_DELAY_S: float = Field(
        default=5.0, description="Automatic retry after a hard error (0 disables)"
    )

    # Storage
    CACHE_DURABLE_BACKEND: Literal["file", "redis", "memory"] = Field(
        default="file", description="Backend for the durable tier"
    )
    CACHE_DURABLE_PATH: str = Field(
        default=".fairway_cache.json", description="File used by the file backend"
    )
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis URL for the redis backend")
    STORAGE_QUOTA_BYTES: int | None = Field(
        default=5 * 1024 * 1024, description="Byte quota per local backend (None disables)"
    )

    # HTTP fetch helper
    HTTP_TIMEOUT_S: float = Field(default=10.0, description="Request timeout in seconds")
    HTTP_RETRIES: int = Field(default=2, description="Retries after the first attempt")
    HTTP_RETRY_DELAY_S: float = Field(default=0.3, description="Initial backoff delay")
    HTTP_RETRY_MAX_DELAY_S: float = Field(default=5.0, description="Backoff ceiling")
    HTTP_BASE_URL: str = Field(default="", description="Prefix for relative request URLs")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Fairway Community", description="Application name")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_PREFIX")
    @classmethod
    def validate_prefix(cls, v):
        """Validate cache prefix."""
        if not v:
            raise ValueError("CACHE_PREFIX must not be empty")
        return v

    @field_validator("CACHE_VERSION")
    @classmethod
    def validate_version(cls, v):
        """The version tag must be non-empty and free of the key separator."""
        if not v or "_" in v:
            raise ValueError("CACHE_VERSION must be non-empty and must not contain '_'")
        return v

    @model_validator(mode="after")
    def validate_sweep_bounds(self):
        """The retention floor must sit strictly below the eviction ceiling."""
        if not 0 <= self.SWEEP_FLOOR < self.SWEEP_CEILING:
            raise ValueError("SWEEP_FLOOR must be >= 0 and lower than SWEEP_CEILING")
        if not 0 < self.PRUNE_FRACTION <= 1:
            raise ValueError("PRUNE_FRACTION must be in (0, 1]")
        return self

    # Nested configuration objects
    @property
    def cache(self) -> 'CacheSettings':
        """Get cache namespace and TTL settings."""
        return CacheSettings(
            CACHE_PREFIX=self.CACHE_PREFIX,
            CACHE_VERSION=self.CACHE_VERSION,
            CACHE_TTL_SHORT_MS=self.CACHE_TTL_SHORT_MS,
            CACHE_TTL_MEDIUM_MS=self.CACHE_TTL_MEDIUM_MS,
            CACHE_TTL_LONG_MS=self.CACHE_TTL_LONG_MS,
            CACHE_TTL_WEEK_MS=self.CACHE_TTL_WEEK_MS,
        )

    @property
    def sweeper(self) -> 'SweeperSettings':
        """Get sweeper settings."""
        return SweeperSettings(
            SWEEP_CEILING=self.SWEEP_CEILING,
            SWEEP_FLOOR=self.SWEEP_FLOOR,
            SWEEP_INTERVAL_S=self.SWEEP_INTERVAL_S,
            PRUNE_FRACTION=self.PRUNE_FRACTION,
        )

    @property
    def revalidation(self) -> 'RevalidationSettings':
        """Get revalidation settings."""
        return RevalidationSettings(
            FETCH_MIN_INTERVAL_MS=self.FETCH_MIN_INTERVAL_MS,
            BACKGROUND_REFRESH_INTERVAL_S=self.BACKGROUND_REFRESH_INTERVAL_S,
            HARD_ERROR_RETRY_DELAY_S=self.HARD_ERROR_RETRY_DELAY_S,
        )

    @property
    def storage(self) -> 'StorageSettings':
        """Get storage backend settings."""
        return StorageSettings(
            CACHE_DURABLE_BACKEND=self.CACHE_DURABLE_BACKEND,
            CACHE_DURABLE_PATH=self.CACHE_DURABLE_PATH,
            REDIS_URL=self.REDIS_URL,
            STORAGE_QUOTA_BYTES=self.STORAGE_QUOTA_BYTES,
        )

    @property
    def http(self) -> 'HttpFetchSettings':
        """Get HTTP fetch settings."""
        return HttpFetchSettings(
            HTTP_TIMEOUT_S=self.HTTP_TIMEOUT_S,
            HTTP_RETRIES=self.HTTP_RETRIES,
            HTTP_RETRY_DELAY_S=self.HTTP_RETRY_DELAY_S,
            HTTP_RETRY_MAX_DELAY_S=self.HTTP_RETRY_MAX_DELAY_S,
            HTTP_BASE_URL=self.HTTP_BASE_URL,
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT,
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
