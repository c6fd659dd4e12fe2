"""Tests for environment-driven settings"""

from pathlib import Path

import pytest

from stockroom.core.config import DEFAULT_BCRYPT_ROUNDS, DEV_TOKEN_SECRET, load_auth_settings
from stockroom.utils.exceptions import ConfigError

ENV_VARS = (
    "ENVIRONMENT",
    "STOCKROOM_DATA_DIR",
    "AUTH_TOKEN_SECRET",
    "BCRYPT_ROUNDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_development_defaults():
    settings = load_auth_settings()
    assert settings.environment == "development"
    assert not settings.is_production
    assert settings.token_secret == DEV_TOKEN_SECRET
    assert settings.bcrypt_rounds == DEFAULT_BCRYPT_ROUNDS == 10
    assert settings.users_file == Path("data") / "users.json"
    assert settings.log_format == "json"


def test_data_dir_and_secret_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STOCKROOM_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("AUTH_TOKEN_SECRET", "s3cret")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = load_auth_settings()
    assert settings.users_file == tmp_path / "users.json"
    assert settings.token_secret == "s3cret"
    assert settings.log_level == "DEBUG"


def test_production_requires_secret(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    with pytest.raises(ConfigError, match="AUTH_TOKEN_SECRET"):
        load_auth_settings()


def test_production_refuses_development_secret(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "Production")
    monkeypatch.setenv("AUTH_TOKEN_SECRET", DEV_TOKEN_SECRET)
    with pytest.raises(ConfigError):
        load_auth_settings()


def test_production_with_secret(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("AUTH_TOKEN_SECRET", "a-long-random-secret")
    settings = load_auth_settings()
    assert settings.is_production
    assert settings.token_secret == "a-long-random-secret"


@pytest.mark.parametrize("value", ["ten", "3", "32"])
def test_invalid_bcrypt_rounds(monkeypatch, value):
    monkeypatch.setenv("BCRYPT_ROUNDS", value)
    with pytest.raises(ConfigError):
        load_auth_settings()


def test_create_app_fails_closed_in_production(monkeypatch):
    from web.main import create_app

    monkeypatch.setenv("ENVIRONMENT", "production")
    with pytest.raises(ConfigError):
        create_app()
