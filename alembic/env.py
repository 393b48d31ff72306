"""
Care Guide Notes API — Alembic Migration Environment
======================================================

What:  Runs schema migrations for the users, notes and posts tables.
How:   The database URL is taken from careguide.config (DATABASE_URL) so the
       app and the migrations always point at the same database; alembic.ini
       only carries logging setup. Model metadata comes from careguide.models,
       which lets `alembic revision --autogenerate` diff the ORM against the
       live schema.
Who:   Invoked by the `alembic` CLI (upgrade, downgrade, revision).
When:  Before starting the API against a fresh or outdated database.

Dialects:
    PostgreSQL (asyncpg) in production. SQLite (aiosqlite) works for local
    runs; ALTER TABLE support there is limited, so SQLite migrations are
    rendered in batch mode (copy-and-move table rebuilds).
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from careguide.config import settings
from careguide.database import Base

# Registers User, Note and Post on Base.metadata for --autogenerate
import careguide.models  # noqa: F401

# Values from alembic.ini
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# DATABASE_URL wins over any sqlalchemy.url left in alembic.ini
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Emits the SQL to stdout instead of executing it, e.g. for review by a DBA
    or for databases the CLI host cannot reach.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Apply pending revisions on an open (sync-facing) connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Run migrations in 'online' mode with an async engine.

    Alembic's migration context is synchronous; connection.run_sync() hands
    it the underlying sync connection of the async driver.
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # one-shot CLI run, no pool to keep
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point for online migrations."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
