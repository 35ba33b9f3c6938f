"""
Tests for configuration management in `medtrack/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level and format coercion
- Storage and summary overrides
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from medtrack.config import (
    AppConfig,
    StorageConfig,
    SummaryConfig,
    get_config,
    load_config_from_env,
    print_config_summary,
)
from medtrack.observability import configure_logging


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "ENVIRONMENT",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "MEDTRACK_STORAGE_BACKEND",
        "MEDTRACK_DATA_DIR",
        "MEDTRACK_DATABASE_KEY",
        "MEDTRACK_LEGACY_MEDICATIONS_KEY",
        "MEDTRACK_AVERAGE_WINDOW_DAYS",
        "MEDTRACK_WEEKLY_THERAPY_GOAL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "dev")

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.storage.backend == "file"
    assert config.storage.database_key == "health_database"
    assert config.storage.legacy_medications_key == "medications"
    assert config.summary.average_window_days == 7


def test_production_logs_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    assert load_config_from_env().logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert load_config_from_env().logging.level == "ERROR"


def test_storage_and_summary_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEDTRACK_STORAGE_BACKEND", "Memory")
    monkeypatch.setenv("MEDTRACK_DATA_DIR", "/tmp/medtrack")
    monkeypatch.setenv("MEDTRACK_WEEKLY_THERAPY_GOAL", "3")
    monkeypatch.setenv("MEDTRACK_AVERAGE_WINDOW_DAYS", "14")

    config = load_config_from_env()

    assert config.storage.backend == "memory"
    assert config.storage.data_dir == "/tmp/medtrack"
    assert config.summary.weekly_therapy_goal == 3
    assert config.summary.average_window_days == 14


def test_storage_keys_must_differ() -> None:
    with pytest.raises(ValueError, match="must differ"):
        StorageConfig(database_key="same", legacy_medications_key="same")


def test_summary_config_validation() -> None:
    with pytest.raises(ValueError):
        SummaryConfig(average_window_days=0)

    with pytest.raises(ValueError):
        SummaryConfig(trend_min_readings=1)


def test_get_config_cache() -> None:
    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


def test_print_config_summary(capsys: pytest.CaptureFixture[str]) -> None:
    print_config_summary()

    out = capsys.readouterr().out
    assert "Document Key: health_database" in out
    assert "Weekly Therapy Goal: 5" in out


def test_configure_logging_accepts_both_formats() -> None:
    configure_logging(load_config_from_env().logging)
    configure_logging(None)
