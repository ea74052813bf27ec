"""Database engine and session management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from .. import models  # noqa: F401  registers table metadata
from ..core.config import Settings

logger = logging.getLogger(__name__)


def _is_memory_database(database: str | None) -> bool:
    return not database or database == ":memory:" or database.startswith("file::memory:")


class Database:
    """Own the async engine and session factory for one record store.

    Instances are built explicitly (see :func:`Database.from_settings`) and
    handed to the application, so tests can run against an isolated store.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        journal_mode: str = "WAL",
        synchronous: str = "NORMAL",
    ) -> None:
        self._url = make_url(url)
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_database(self._url.database):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if self.is_sqlite:
            self._install_sqlite_pragmas(journal_mode=journal_mode, synchronous=synchronous)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a database handle from application settings."""
        return cls(
            settings.sqlalchemy_database_url,
            echo=settings.db_echo,
            journal_mode=settings.sqlite_journal_mode,
            synchronous=settings.sqlite_synchronous,
        )

    @property
    def is_sqlite(self) -> bool:
        return self._url.get_backend_name() == "sqlite"

    def _install_sqlite_pragmas(self, *, journal_mode: str, synchronous: str) -> None:
        @event.listens_for(self.engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute(f"PRAGMA journal_mode={journal_mode}")
                cursor.execute(f"PRAGMA synchronous={synchronous}")
                cursor.execute("PRAGMA foreign_keys=ON")
            finally:
                cursor.close()

    def _ensure_sqlite_directory(self) -> None:
        database = self._url.database
        if not self.is_sqlite or _is_memory_database(database):
            return
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an ``AsyncSession`` for request-scoped work."""
        async with self.session_maker() as session:
            yield session

    async def create_all(self) -> None:
        """Create all database tables (startup, tests and local development)."""
        self._ensure_sqlite_directory()
        async with self.engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)
        logger.info("Database initialised", extra={"backend": self._url.get_backend_name()})

    async def ping(self) -> bool:
        """Return ``True`` when the store answers a trivial query."""
        try:
            async with self.engine.connect() as connection:
                await connection.execute(sa.text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed.", exc_info=True)
            return False
        return True

    async def dispose(self) -> None:
        """Release pooled connections."""
        await self.engine.dispose()


__all__ = ["Database"]
