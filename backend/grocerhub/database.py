"""
GrocerHub Backend — Database Handle & Session Management
==========================================================

What:  Async SQLAlchemy engine + session factory wrapped in an explicitly
       constructed `Database` handle, and the FastAPI session dependency.
How:   `create_app()` builds (or receives) a Database and stores it on
       `app.state.database`. Request handlers obtain sessions through
       `get_db_session`, which commits on success and rolls back on error.
       Background jobs (sync-all) open their own sessions from the handle.
Who:   Application factory, route dependencies, seeding script, tests.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and are only
    applied to server databases. SQLite URLs (used by the test-suite) get a
    StaticPool for in-memory databases so every session sees the same data.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from grocerhub.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for autogenerate.
    """
    pass


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool options appropriate for the database behind `url`."""
    if url.startswith("sqlite"):
        options: Dict[str, Any] = {}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        return options
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Hands transaction control to SQLAlchemy so SAVEPOINT and ROLLBACK behave
    on SQLite the way they do on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """
    Storage handle passed explicitly to everything that touches persistence.

    Attributes:
        url:             Connection URL this handle was built from
        engine:          AsyncEngine owning the connection pool
        session_factory: async_sessionmaker producing AsyncSession objects
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or settings.database_url
        self.engine: AsyncEngine = create_async_engine(
            self.url,
            echo=settings.log_level == "DEBUG" if echo is None else echo,
            **_engine_options(self.url),
        )
        if self.url.startswith("sqlite"):
            _enable_sqlite_savepoints(self.engine)

        # expire_on_commit=False: attributes stay readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Transactional session scope.

        Commits when the block exits cleanly, rolls back and re-raises on any
        exception, and always returns the connection to the pool.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Creates every table known to `Base.metadata` (dev and tests)."""
        import grocerhub.models  # noqa: F401  registers all mappers

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Runs SELECT 1; False when the database is unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Closes all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Dependencies ──────────────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database handle."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a session from the application's Database handle
    2. Yields it to the route handler
    3. Commits on success, rolls back on error, always closes

    Example usage in a route:
        @router.get("/orders")
        async def list_orders(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
