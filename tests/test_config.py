"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

import growth.config
from growth.config import Settings, get_settings, reload_settings


class TestSettings:
    """Test settings defaults and overrides."""

    def test_defaults(self, monkeypatch):
        """Test growth thresholds default values."""
        for key in ["READY_THRESHOLD_PCT", "RECOMMENDATION_PROGRESS_PCT", "EFFICIENT_YIELD_PCT", "CURRENCY"]:
            monkeypatch.delenv(key, raising=False)

        settings = Settings(_env_file=None)

        assert settings.ready_threshold_pct == 80.0
        assert settings.recommendation_progress_pct == 60.0
        assert settings.efficient_yield_pct == 85.0
        assert settings.currency == "COP"

    def test_environment_override(self, test_settings):
        """Test environment variables are picked up on reload."""
        assert test_settings.log_level == "DEBUG"
        assert test_settings.database_url.startswith("sqlite:///")

    def test_directories_created(self, test_settings):
        """Test data and log directories exist after loading."""
        assert test_settings.log_file.parent.exists()
        assert (test_settings.log_file.parent.parent / "data").exists()

    def test_singleton(self, test_settings):
        """Test get_settings returns the cached instance."""
        assert get_settings() is test_settings
        assert reload_settings() is not test_settings

    def test_threshold_bounds(self, monkeypatch):
        """Test thresholds outside 0-100 are rejected."""
        monkeypatch.setenv("READY_THRESHOLD_PCT", "120")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_memory_database_needs_no_directory(self, monkeypatch, tmp_path):
        """Test in-memory SQLite settings load without creating folders."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(growth.config, "_settings", None)
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "growth.log"))

        settings = reload_settings()

        assert settings.database_url == "sqlite://"
        assert not (tmp_path / "data").exists()


@pytest.fixture
def cached_settings():
    """
    Check no settings instance is left cached once dependent fixtures tear down.
    """
    yield growth.config._settings
    assert growth.config._settings is None


def test_override_released_on_teardown(cached_settings, test_settings):
    """Test the overridden settings are not left cached once the test ends."""
    assert growth.config._settings is test_settings
    assert test_settings is not cached_settings
