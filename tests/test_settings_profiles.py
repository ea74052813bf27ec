from __future__ import annotations

import pytest
from pydantic import ValidationError

from pictodo.app.core.config import Settings


def test_environment_profiles_apply_defaults() -> None:
    dev = Settings(environment="development")
    assert dev.environment == "development"
    assert dev.log_level == "DEBUG"
    assert dev.reload is True

    test_profile = Settings(environment="test")
    assert test_profile.environment == "test"
    assert test_profile.log_level == "WARNING"
    assert test_profile.reload is False

    prod = Settings(environment="production")
    assert prod.log_level == "INFO"
    assert prod.reload is False
    assert prod.db_echo is False


def test_environment_aliases_are_normalised() -> None:
    assert Settings(environment="DEV").environment == "development"
    assert Settings(environment="testing").environment == "test"
    assert Settings(environment="prod").environment == "production"
    assert Settings(environment="staging").environment == "development"


def test_environment_profile_respects_explicit_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "error")
    overridden = Settings(environment="test")
    assert overridden.log_level == "ERROR"


def test_outbound_services_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_URL", "https://storage.internal")
    monkeypatch.setenv("STORAGE_API_KEY", "secret")
    monkeypatch.setenv("IDENTITY_USERINFO_URL", "https://id.internal/userinfo")
    monkeypatch.setenv("OUTBOUND_TIMEOUT_SECONDS", "2.5")

    settings = Settings(environment="test")

    assert settings.storage_base_url == "https://storage.internal"
    assert settings.storage_api_key == "secret"
    assert settings.identity_userinfo_url == "https://id.internal/userinfo"
    assert settings.outbound_timeout_seconds == 2.5


def test_blank_storage_key_is_treated_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_API_KEY", "   ")

    assert Settings(environment="test").storage_api_key is None


def test_outbound_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(environment="test", outbound_timeout_seconds=0)


def test_database_path_overrides_database_url() -> None:
    settings = Settings(environment="test", database_path="/tmp/pictodo/app.db")

    assert settings.sqlalchemy_database_url == "sqlite+aiosqlite:////tmp/pictodo/app.db"


def test_sqlite_pragmas_are_whitelisted() -> None:
    settings = Settings(environment="test", sqlite_journal_mode="delete", sqlite_synchronous="bogus")

    assert settings.sqlite_journal_mode == "DELETE"
    assert settings.sqlite_synchronous == "NORMAL"
