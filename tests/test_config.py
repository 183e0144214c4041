from __future__ import annotations

import dataclasses

import pytest

from crm_api.app.core.config import Settings, parse_ttl
from crm_api.app.core.db import get_database_path
from crm_api.app.core.errors import ConfigError
from crm_api.app.main import create_app


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.jwt_secret is None
    assert settings.token_ttl_seconds == 3600
    assert settings.hash_iterations == 100_000
    assert settings.db_dialect == "sqlite"
    assert settings.port == 3000


def test_values_read_from_environment():
    settings = Settings.from_env(
        {
            "JWT_SECRET": "s3cret",
            "JWT_TTL": "15m",
            "PASSWORD_HASH_ITERATIONS": "5000",
            "DB_STORAGE": "/tmp/crm.sqlite",
            "DB_LOGGING": "true",
            "PORT": "8080",
        }
    )
    assert settings.jwt_secret == "s3cret"
    assert settings.token_ttl_seconds == 900
    assert settings.hash_iterations == 5000
    assert settings.db_storage == "/tmp/crm.sqlite"
    assert settings.db_logging is True
    assert settings.port == 8080


def test_empty_secret_is_treated_as_missing():
    assert Settings.from_env({"JWT_SECRET": ""}).jwt_secret is None


@pytest.mark.parametrize(
    "value, seconds",
    [("3600", 3600), ("90s", 90), ("15m", 900), ("1h", 3600), ("2d", 172800)],
)
def test_parse_ttl(value, seconds):
    assert parse_ttl(value) == seconds


@pytest.mark.parametrize("value", ["", "soon", "0", "-5m", "1w"])
def test_parse_ttl_rejects_garbage(value):
    with pytest.raises(ConfigError):
        parse_ttl(value)


def test_non_numeric_port_is_a_config_error():
    with pytest.raises(ConfigError):
        Settings.from_env({"PORT": "eighty"})


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.jwt_secret = "changed"


def test_server_dialect_without_credentials_is_reported():
    settings = Settings.from_env({"DB_DIALECT": "postgres", "DB_NAME": "crm"})
    with pytest.raises(ConfigError, match="Database credentials are missing"):
        get_database_path(settings)


def test_server_dialect_with_credentials_is_still_unsupported():
    settings = Settings.from_env(
        {"DB_DIALECT": "postgres", "DB_NAME": "crm", "DB_USER": "crm", "DB_PORT": "5432"}
    )
    assert settings.db_port == 5432
    with pytest.raises(ConfigError, match="Unsupported database dialect"):
        get_database_path(settings)


def test_missing_credentials_fail_app_creation(tmp_path):
    settings = Settings(db_dialect="mysql", db_storage=str(tmp_path / "unused.sqlite"))
    with pytest.raises(ConfigError, match="Database credentials are missing"):
        create_app(settings)


def test_sqlite_ignores_server_credentials(tmp_path):
    settings = Settings(db_storage=str(tmp_path / "crm.sqlite"))
    assert get_database_path(settings) == str(tmp_path / "crm.sqlite")


@pytest.mark.parametrize("value, level", [("debug", "DEBUG"), (" Warning ", "WARNING"), ("", "INFO")])
def test_log_level_is_normalised(value, level):
    assert Settings.from_env({"LOG_LEVEL": value}).log_level == level


@pytest.mark.parametrize("value", ["verbose", "warn", "10", "trace"])
def test_unknown_log_level_is_a_config_error(value):
    with pytest.raises(ConfigError, match="LOG_LEVEL"):
        Settings.from_env({"LOG_LEVEL": value})


def test_unknown_log_level_fails_boot_with_exit_code(monkeypatch):
    import run

    monkeypatch.setenv("LOG_LEVEL", "verbose")
    assert run.main() == 1
