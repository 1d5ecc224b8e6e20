from __future__ import annotations

import pytest

from recordkit.config import Settings, get_settings
from recordkit.infrastructure.connection_manager import ConnectionManager

DEFAULT_RETRIES = 3
CUSTOM_RETRIES = 5

_ENV_VARS = (
    "DATABASE_URL",
    "CONNECT_RETRIES",
    "LOG_LEVEL",
    "LOG_JSON",
    "RECORD_AUTO_RELOAD",
    "RECORD_SAVE_RESULTS",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite::memory:"
    assert settings.connect_retries == DEFAULT_RETRIES
    assert settings.log_level == "INFO"
    assert settings.log_json is False
    assert settings.auto_reload is True
    assert settings.save_results is True


def test_settings_read_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECORD_AUTO_RELOAD", "false")
    clean_env.setenv("CONNECT_RETRIES", str(CUSTOM_RETRIES))
    clean_env.setenv("DATABASE_URL", "sqlite:/tmp/app.db")

    settings = get_settings()

    assert settings.auto_reload is False
    assert settings.connect_retries == CUSTOM_RETRIES
    assert settings.database_url == "sqlite:/tmp/app.db"


def test_get_settings_is_cached(clean_env: pytest.MonkeyPatch) -> None:
    assert get_settings() is get_settings()


def test_connection_manager_from_settings(test_settings: Settings) -> None:
    manager = ConnectionManager.from_settings(test_settings)

    assert manager.get_data_source_ids() == ["default"]
    assert manager.get_driver_type("default") == "sqlite"
    assert manager.connect_retries == test_settings.connect_retries
