"""
Alembic Migration Environment
===============================

What:  Runs GrocerHub migrations through an async engine bridged with
       connection.run_sync().
How:   The URL comes from settings (DATABASE_URL), unless the caller passes
       `-x db_url=...`. Table metadata is `grocerhub.database.Base.metadata`.
       SQLite targets run in batch mode so ALTER-style operations work there.
Who:   `alembic upgrade head`, `alembic downgrade -1`,
       `alembic revision --autogenerate -m "..."`, run from backend/.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import grocerhub.models  # noqa: F401  registers every table on Base.metadata
from grocerhub.config import settings
from grocerhub.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or settings.database_url


def _configure(**kwargs) -> None:
    url = _database_url()
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting to the database."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    # No pooling: one short-lived connection per migration run
    engine = create_async_engine(_database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_with_connection)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
