"""
Care Guide Notes API — Database Session Management
====================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI dependencies that hand sessions to route handlers.
Why:   Centralizes all database connection logic in one place.
How:   An async engine with connection pooling; a session dependency that
       commits on success and rolls back on error; a session-factory
       dependency for list endpoints, which run their page query and their
       count query concurrently in two sessions.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600
    SQLite (tests, local development) uses SQLAlchemy's default pool for the
    dialect and ignores the sizing options.
"""

import logging
from typing import Any, AsyncGenerator, Dict, FrozenSet, Iterable, Optional

from fastapi import Depends
from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from careguide.config import settings

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: rows stay readable after the request commits,
# otherwise serializing them would trigger lazy loads outside the session
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Models list attributes that must never leave the server (password hashes)
    in `__hidden__`. Hidden attributes are skipped by `to_dict()` and are not
    usable as filter, search, sort or projection fields in list queries.
    """

    __hidden__: FrozenSet[str] = frozenset()

    def to_dict(
        self,
        fields: Optional[Iterable[str]] = None,
        relationships: bool = True,
    ) -> Dict[str, Any]:
        """
        Serialize the row into a plain dict of its loaded attributes.

        Only attributes already loaded are read, so this never triggers a lazy
        load (which async sessions forbid). Relationships are included when
        they were eagerly loaded, one level deep.

        Args:
            fields:        Restrict output to these attribute names. Primary
                           keys are always included.
            relationships: Include eagerly loaded relationships.
        """
        state = inspect(self)
        mapper = state.mapper
        unloaded = state.unloaded
        wanted = set(fields) if fields is not None else None
        primary_keys = {column.key for column in mapper.primary_key}

        data: Dict[str, Any] = {}
        for attr in mapper.column_attrs:
            key = attr.key
            if key in self.__hidden__ or key in unloaded:
                continue
            if wanted is not None and key not in wanted and key not in primary_keys:
                continue
            data[key] = getattr(self, key)

        if not relationships:
            return data

        for rel in mapper.relationships:
            key = rel.key
            if key in unloaded:
                continue
            if wanted is not None and key not in wanted:
                continue
            value = getattr(self, key)
            if value is None:
                data[key] = None
            elif rel.uselist:
                data[key] = [item.to_dict(relationships=False) for item in value]
            else:
                data[key] = value.to_dict(relationships=False)
        return data


# ── Dependencies ──────────────────────────────────────────────────────────
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    FastAPI dependency returning the session factory.

    List endpoints need it to open one session for the page query and one
    for the count query. Tests override this dependency to point the whole
    app at a throwaway database.
    """
    return async_session_factory


async def get_db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Commits when the handler returns, rolls back and re-raises when it fails,
    and always returns the connection to the pool.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
@retry(
    stop=stop_after_attempt(settings.db_connect_attempts),
    wait=wait_exponential_jitter(initial=1, max=10),
    retry=retry_if_exception_type((OSError, OperationalError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def wait_for_database() -> None:
    """
    Block until the database answers `SELECT 1`.

    In docker-compose the API container usually starts before PostgreSQL
    accepts connections; backing off here keeps startup from crashing.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


async def init_models() -> None:
    """Create all tables from the model metadata (development only)."""
    import careguide.models  # noqa: F401  registers every model on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created from model metadata")


async def dispose_engine() -> None:
    """Close all pooled connections (called on shutdown)."""
    await engine.dispose()
