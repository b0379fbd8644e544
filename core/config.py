"""Application configuration with environment-specific profiles.

Supports dev, staging, production and test environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Substitution engine
    fail_open_on_guardrail_error: bool = True
    guardrail_url: str | None = None
    guardrail_timeout_seconds: float = 5.0
    catalog_source: str = "database"
    max_substitutions: int = 3
    default_available_time_min: float = 180.0

    # HTTP surface
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    substitutions_rate_limit: str = "30/minute"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    request_id_header_name: str = "X-Request-ID"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "fail_open_on_guardrail_error": True,
    },
    "staging": {
        "log_level": "INFO",
        "fail_open_on_guardrail_error": True,
    },
    "production": {
        "log_level": "WARNING",
        "fail_open_on_guardrail_error": False,
    },
    "test": {
        "log_level": "WARNING",
        "fail_open_on_guardrail_error": True,
        "rate_limit_enabled": False,
    },
}

DEFAULT_DATABASE_URL = "sqlite:///./workout_catalog.db"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def database_url() -> str:
    """Resolve the catalog database URL from DATABASE_URL or the local SQLite default."""
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        fail_open_on_guardrail_error=_env_bool(
            "FAIL_OPEN_ON_GUARDRAIL_ERROR", profile.get("fail_open_on_guardrail_error", True)
        ),
        guardrail_url=os.getenv("GUARDRAIL_URL") or None,
        guardrail_timeout_seconds=float(os.getenv("GUARDRAIL_TIMEOUT_SECONDS", "5.0")),
        catalog_source=os.getenv("CATALOG_SOURCE", "database").strip().lower(),
        max_substitutions=int(os.getenv("MAX_SUBSTITUTIONS", "3")),
        default_available_time_min=float(os.getenv("DEFAULT_AVAILABLE_TIME_MIN", "180")),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", profile.get("rate_limit_enabled", True)),
        rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
        substitutions_rate_limit=os.getenv("SUBSTITUTIONS_RATE_LIMIT", "30/minute"),
        cors_origins=_env_list("CORS_ORIGINS", ["*"]),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
    )
