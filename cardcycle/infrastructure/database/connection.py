"""Database engine and request-scoped sessions."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from cardcycle.core.config import settings

logger = structlog.get_logger(__name__)

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def normalize_database_url(url: str) -> str:
    """Point plain postgres/sqlite URLs at their async drivers."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLite honour SAVEPOINT.

    The cycle upsert writes each account inside ``begin_nested()``.
    pysqlite opens transactions lazily and releases savepoints on its own
    schedule, so the driver's handling is switched off and BEGIN is
    emitted explicitly.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine with pool options suited to the backend."""
    url = normalize_database_url(url)
    options: Dict[str, Any] = {"echo": echo}

    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # One shared connection, or every session sees an empty database
            options["poolclass"] = StaticPool
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **options)
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(engine)
    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions flush explicitly; cycle writes flush inside their savepoint."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class DatabaseSessionManager:
    """
    Owns the engine and hands out one session per request.

    A request computing several accounts shares its session; each
    account's cycles are written in their own savepoint, and the outer
    transaction commits once the request finishes.
    """

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    def init(self, database_url: str | None = None) -> None:
        """
        Create the engine and session factory.

        Args:
            database_url: Optional override for the configured URL
        """
        self._engine = create_engine(database_url or settings.database_url, echo=settings.debug)
        self._sessionmaker = create_sessionmaker(self._engine)
        logger.info("database_initialized", dialect=self._engine.dialect.name)

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session committed when the block exits cleanly.

        Failed account savepoints have already been rolled back, so the
        outer commit keeps every account that was written successfully.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


db_manager = DatabaseSessionManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding the request's session."""
    async with db_manager.session() as session:
        yield session
