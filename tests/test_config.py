from __future__ import annotations

import pytest

from config import DevelopmentConfig, TestingConfig, get_config


def test_get_config_returns_testing_config():
    config_cls = get_config("testing")

    assert config_cls is TestingConfig
    assert config_cls.SYNC_ENABLED is False


def test_get_config_rejects_unknown_environment():
    with pytest.raises(KeyError):
        get_config("staging")


def test_get_config_normalizes_source_aliases(monkeypatch):
    monkeypatch.setattr(DevelopmentConfig, "RATE_SOURCE", "Supabase")

    assert get_config("development").RATE_SOURCE == "rest"


def test_get_config_rejects_unsupported_source(monkeypatch):
    monkeypatch.setattr(DevelopmentConfig, "RATE_SOURCE", "redis")

    with pytest.raises(ValueError):
        get_config("development")


def test_get_config_rejects_non_positive_interval(monkeypatch):
    monkeypatch.setattr(DevelopmentConfig, "RATE_POLL_INTERVAL_SECONDS", 0)

    with pytest.raises(ValueError):
        get_config("development")
