"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, and default values.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from fairway_cache.core.config.constants import (
    FETCH_MIN_INTERVAL_MS,
    SWEEP_CEILING,
    SWEEP_FLOOR,
    CacheExpiration,
    Stage,
    StorageTier,
)
from fairway_cache.core.config.settings import Settings, get_settings, reload_settings


@pytest.mark.unit
class TestSettingsDefaults:
    """Test Settings defaults and grouped views."""

    def test_namespace_defaults(self):
        settings = Settings()

        assert settings.cache.CACHE_PREFIX == "golf_app"
        assert settings.cache.CACHE_VERSION == "v1.0.0"

    def test_ttl_tiers_match_constants(self):
        """The configurable TTL tiers default to the CacheExpiration values."""
        settings = Settings()

        assert settings.cache.CACHE_TTL_SHORT_MS == CacheExpiration.SHORT
        assert settings.cache.CACHE_TTL_MEDIUM_MS == CacheExpiration.MEDIUM
        assert settings.cache.CACHE_TTL_LONG_MS == CacheExpiration.LONG
        assert settings.cache.CACHE_TTL_WEEK_MS == CacheExpiration.WEEK

    def test_sweeper_defaults(self):
        settings = Settings()

        assert settings.sweeper.SWEEP_CEILING == SWEEP_CEILING == 50
        assert settings.sweeper.SWEEP_FLOOR == SWEEP_FLOOR == 30
        assert settings.sweeper.SWEEP_INTERVAL_S == 3600
        assert settings.sweeper.PRUNE_FRACTION == pytest.approx(0.2)

    def test_revalidation_defaults(self):
        settings = Settings()

        assert settings.revalidation.FETCH_MIN_INTERVAL_MS == FETCH_MIN_INTERVAL_MS == 10_000
        assert settings.revalidation.BACKGROUND_REFRESH_INTERVAL_S == 300
        assert settings.revalidation.HARD_ERROR_RETRY_DELAY_S == 5

    def test_storage_and_http_groups(self):
        settings = Settings()

        assert settings.storage.CACHE_DURABLE_BACKEND in ("file", "redis", "memory")
        assert settings.http.HTTP_RETRIES == 2
        assert settings.http.HTTP_TIMEOUT_S == 10
        assert settings.http.HTTP_RETRY_MAX_DELAY_S == 5
        assert settings.http.HTTP_BASE_URL == ""


@pytest.mark.unit
class TestSettingsLoading:
    """Test settings loading from environment variables."""

    def test_settings_load_from_env_vars(self):
        env_vars = {
            "CACHE_VERSION": "v1.0.1",
            "CACHE_DURABLE_BACKEND": "memory",
            "SWEEP_CEILING": "10",
            "SWEEP_FLOOR": "5",
            "LOG_LEVEL": "debug",
            "ENVIRONMENT": "test",
        }

        with patch.dict(os.environ, env_vars):
            settings = Settings()

        assert settings.cache.CACHE_VERSION == "v1.0.1"
        assert settings.storage.CACHE_DURABLE_BACKEND == "memory"
        assert settings.sweeper.SWEEP_CEILING == 10
        assert settings.sweeper.SWEEP_FLOOR == 5
        assert settings.logging.LOG_LEVEL == "DEBUG"
        assert settings.app.ENVIRONMENT == "test"

    def test_invalid_backend_is_rejected(self):
        with patch.dict(os.environ, {"CACHE_DURABLE_BACKEND": "sqlite"}):
            with pytest.raises(ValidationError):
                Settings()


@pytest.mark.unit
class TestSettingsValidation:
    """Test settings validation and edge cases."""

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="LOUD")

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValidationError):
            Settings(CACHE_PREFIX="")

    def test_version_with_separator_rejected(self):
        """An underscore in the version would make keys ambiguous."""
        with pytest.raises(ValidationError):
            Settings(CACHE_VERSION="v1_0")

    def test_floor_must_be_below_ceiling(self):
        with pytest.raises(ValidationError):
            Settings(SWEEP_CEILING=30, SWEEP_FLOOR=30)

    def test_prune_fraction_bounds(self):
        with pytest.raises(ValidationError):
            Settings(PRUNE_FRACTION=0)
        with pytest.raises(ValidationError):
            Settings(PRUNE_FRACTION=1.5)


@pytest.mark.unit
class TestGetSettingsFunction:
    """Test the get_settings() / reload_settings() singletons."""

    def test_get_settings_is_singleton(self):
        assert get_settings() is get_settings()

    def test_reload_settings_picks_up_env(self):
        original = get_settings()
        try:
            with patch.dict(os.environ, {"APP_NAME": "Reloaded"}):
                reloaded = reload_settings()
            assert reloaded is not original
            assert reloaded.app.APP_NAME == "Reloaded"
            assert get_settings() is reloaded
        finally:
            reload_settings()


@pytest.mark.unit
class TestConstants:
    """Test enums shared across layers."""

    def test_storage_tiers(self):
        assert {tier.value for tier in StorageTier} == {"durable", "session", "memory"}

    def test_ttl_tiers_are_ordered(self):
        assert CacheExpiration.SHORT < CacheExpiration.MEDIUM < CacheExpiration.LONG < CacheExpiration.WEEK
        assert CacheExpiration.MEDIUM == 30 * 60 * 1000

    def test_stage_values_are_unique(self):
        values = [stage.value for stage in Stage]
        assert len(values) == len(set(values))
