"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_RATE_SOURCES = {"database", "db", "rest", "supabase", "mock"}
SOURCE_ALIASES = {"db": "database", "supabase": "rest"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


class BaseConfig:
    """Base configuration shared across environments."""

    SYNC_ENABLED = _get_env("SYNC_ENABLED", "true").lower() == "true"
    RATE_POLL_INTERVAL_SECONDS = int(_get_env("RATE_POLL_INTERVAL_SECONDS", "30"))

    APP_NAME = "storefront-rates"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = _get_env("DATABASE_URL", "sqlite:///storefront-rates.db")
    SCHEDULER_TIMEZONE = _get_env("SCHEDULER_TIMEZONE", "UTC")
    REQUEST_TIMEOUT_SECONDS = int(_get_env("REQUEST_TIMEOUT_SECONDS", "5"))
    RATE_SOURCE = _get_env("RATE_SOURCE", "database")
    RATE_SOURCE_BASE_URL = _get_env("RATE_SOURCE_BASE_URL", "http://localhost:54321/rest/v1")
    RATE_SOURCE_API_KEY = _get_env("RATE_SOURCE_API_KEY", "")
    RATE_SOURCE_TABLE = _get_env("RATE_SOURCE_TABLE", "exchange_rates")
    RATE_SOURCE_MAX_RETRIES = int(_get_env("RATE_SOURCE_MAX_RETRIES", "1"))
    RATE_SOURCE_BACKOFF_SECONDS = float(_get_env("RATE_SOURCE_BACKOFF_SECONDS", "0.5"))
    RATE_CHANGE_FEED_SIZE = int(_get_env("RATE_CHANGE_FEED_SIZE", "20"))
    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for the test suite; the synchronizer is driven manually."""

    DEBUG = False
    TESTING = True
    SYNC_ENABLED = False
    RATE_SOURCE = "database"
    SQLALCHEMY_DATABASE_URI = "sqlite://"


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If the rate source or polling interval is invalid.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_source(config_cls)
    _validate_interval(config_cls)
    return config_cls


def _validate_source(config_cls: type[BaseConfig]) -> None:
    normalized = normalize_source_name(config_cls.RATE_SOURCE)
    if normalized not in SUPPORTED_RATE_SOURCES:
        raise ValueError(
            f"Unsupported RATE_SOURCE '{config_cls.RATE_SOURCE}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_SOURCES)}"
        )
    config_cls.RATE_SOURCE = normalized


def _validate_interval(config_cls: type[BaseConfig]) -> None:
    if config_cls.RATE_POLL_INTERVAL_SECONDS <= 0:
        raise ValueError(
            "RATE_POLL_INTERVAL_SECONDS must be a positive number of seconds, "
            f"got {config_cls.RATE_POLL_INTERVAL_SECONDS}"
        )


def normalize_source_name(value: str | None) -> str:
    if not value:
        return ""
    normalized = value.strip().lower()
    return SOURCE_ALIASES.get(normalized, normalized)
