"""Tests for configuration module."""

from __future__ import annotations

import pytest

from core.config import DEFAULT_DATABASE_URL, Settings, _ENV_PROFILES, database_url, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_defaults():
    s = Settings(database_url="sqlite://")
    assert s.app_env == "dev"
    assert s.fail_open_on_guardrail_error is True
    assert s.max_substitutions == 3
    assert s.default_available_time_min == 180.0
    assert s.cors_origins == ["*"]


def test_settings_frozen():
    s = Settings(database_url="x")
    with pytest.raises(AttributeError):
        s.database_url = "y"


def test_settings_env_flags():
    assert Settings(database_url="x", app_env="production").is_production is True
    assert Settings(database_url="x", app_env="dev").is_dev is True


def test_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert database_url() == DEFAULT_DATABASE_URL
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://db/catalog")
    assert database_url() == "postgresql+psycopg2://db/catalog"


def test_production_profile_fails_closed(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("FAIL_OPEN_ON_GUARDRAIL_ERROR", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    s = get_settings()
    assert s.fail_open_on_guardrail_error is False
    assert s.log_level == "WARNING"


def test_env_overrides_profile(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("FAIL_OPEN_ON_GUARDRAIL_ERROR", "true")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("MAX_SUBSTITUTIONS", "2")
    monkeypatch.setenv("GUARDRAIL_URL", "http://policy.internal/validate")
    s = get_settings()
    assert s.fail_open_on_guardrail_error is True
    assert s.cors_origins == ["https://a.example", "https://b.example"]
    assert s.max_substitutions == 2
    assert s.guardrail_url == "http://policy.internal/validate"


def test_test_profile_disables_rate_limit(monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)
    assert get_settings().rate_limit_enabled is False


def test_unknown_env_falls_back_to_dev_profile(monkeypatch):
    monkeypatch.setenv("APP_ENV", "qa")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert get_settings().log_level == _ENV_PROFILES["dev"]["log_level"]


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
