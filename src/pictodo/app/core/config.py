"""Application settings powered by ``pydantic-settings``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Sequence

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ... import __version__ as package_version

EnvironmentName = Literal["development", "test", "production"]

_ENVIRONMENT_ALIASES: dict[str, EnvironmentName] = {
    "development": "development",
    "dev": "development",
    "test": "test",
    "testing": "test",
    "production": "production",
    "prod": "production",
}

_ENVIRONMENT_PROFILES: dict[EnvironmentName, dict[str, Any]] = {
    "development": {
        "log_level": "DEBUG",
        "reload": True,
        "db_echo": False,
    },
    "test": {
        "log_level": "WARNING",
        "reload": False,
        "db_echo": False,
    },
    "production": {
        "log_level": "INFO",
        "reload": False,
        "db_echo": False,
    },
}

_SQLITE_JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
_SQLITE_SYNCHRONOUS_MODES = {"OFF", "NORMAL", "FULL", "EXTRA"}


class Settings(BaseSettings):
    """Runtime configuration for the Pictodo service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = Field(default="Pictodo", alias="PICTODO_PROJECT_NAME")
    environment: EnvironmentName = Field(default="development", alias="ENVIRONMENT")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    version: str = Field(default=package_version, alias="VERSION")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/db/app.db",
        alias="DATABASE_URL",
    )
    database_path: str | None = Field(default=None, alias="DATABASE_PATH")
    sqlite_journal_mode: str = Field(default="WAL", alias="SQLITE_JOURNAL_MODE")
    sqlite_synchronous: str = Field(default="NORMAL", alias="SQLITE_SYNCHRONOUS")
    db_echo: bool = Field(default=False, alias="DB_ECHO")

    identity_userinfo_url: str = Field(
        default="https://oauth.koompi.org/v2/oauth/userinfo",
        alias="IDENTITY_USERINFO_URL",
    )
    storage_base_url: str = Field(
        default="https://api-kconsole.koompi.cloud",
        alias="STORAGE_URL",
    )
    storage_api_key: str | None = Field(default=None, alias="STORAGE_API_KEY")
    storage_visibility: str = Field(default="public", alias="STORAGE_VISIBILITY")
    outbound_timeout_seconds: float = Field(default=10.0, alias="OUTBOUND_TIMEOUT_SECONDS")

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        alias="ALLOWED_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["*"], alias="ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"], alias="ALLOW_HEADERS")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    reload: bool = Field(default=True, alias="RELOAD")

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value: object) -> EnvironmentName:
        if isinstance(value, str):
            normalized = value.strip().lower()
        else:
            normalized = ""
        return _ENVIRONMENT_ALIASES.get(normalized, "development")

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _coerce_comma_separated(cls, value: object) -> list[str]:
        """Allow comma separated strings for CORS configuration."""

        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Sequence):
            return [str(item) for item in value if str(item).strip()]
        return []

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        if not isinstance(value, str):
            return "INFO"
        return value.upper()

    @field_validator("sqlite_journal_mode", mode="before")
    @classmethod
    def _normalise_journal_mode(cls, value: object) -> str:
        normalized = str(value).strip().upper() if value is not None else ""
        if normalized not in _SQLITE_JOURNAL_MODES:
            return "WAL"
        return normalized

    @field_validator("sqlite_synchronous", mode="before")
    @classmethod
    def _normalise_synchronous(cls, value: object) -> str:
        normalized = str(value).strip().upper() if value is not None else ""
        if normalized not in _SQLITE_SYNCHRONOUS_MODES:
            return "NORMAL"
        return normalized

    @field_validator("outbound_timeout_seconds")
    @classmethod
    def _ensure_positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("OUTBOUND_TIMEOUT_SECONDS must be greater than zero.")
        return value

    @field_validator("storage_api_key", "database_path", mode="before")
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _apply_environment_profile(self) -> "Settings":
        profile = _ENVIRONMENT_PROFILES[self.environment]
        fields_set = set(getattr(self, "model_fields_set", set()))
        for field_name, value in profile.items():
            if field_name not in fields_set:
                setattr(self, field_name, value)
        return self

    @property
    def sqlalchemy_database_url(self) -> str:
        """Return the database URL, preferring an explicit SQLite file path."""

        if self.database_path:
            return f"sqlite+aiosqlite:///{Path(self.database_path).expanduser()}"
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    return Settings()
