"""
Care Guide Notes API — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (aiosqlite) with all
       tables created from the model metadata. The FastAPI app is pointed at
       it by overriding the get_session_factory dependency.

Fixture Hierarchy (all function-scoped):
    session_factory        fresh database, async_sessionmaker bound to it
    ├── db_session         one AsyncSession on that database
    ├── make_user          async factory: persisted User with a known password
    ├── make_notes         async factory: persisted notes with spaced created_at
    └── test_client        HTTPX AsyncClient wired to the app
    auth_headers           builds an Authorization header for a user
"""

import os
import tempfile

# Settings are read at import time; configure them before careguide is imported
_TEST_DIR = tempfile.mkdtemp(prefix="careguide_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["JWT_ACCESS_SECRET"] = "test-secret-not-for-production-0123456789abcdef"
os.environ["BCRYPT_SALT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_DEMO_USERS"] = "false"

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import careguide.models  # noqa: F401
from careguide.database import Base, get_session_factory
from careguide.models.note import Note
from careguide.models.user import Role, User
from careguide.security import create_access_token, hash_password

DEFAULT_PASSWORD = "123456"

# Fixed, whole-second base time so created_at ordering is deterministic
BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_user(session_factory):
    """
    Usage:
        admin = await make_user(role=Role.ADMIN)
        blocked = await make_user(is_active="BLOCKED")
    """

    async def _make(
        name: str = "Test User",
        email: Optional[str] = None,
        role: Role = Role.USER,
        password: str = DEFAULT_PASSWORD,
        **extra,
    ) -> User:
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"user-{uuid4().hex[:8]}@example.com",
                role=role.value,
                password_hash=hash_password(password),
                **extra,
            )
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest_asyncio.fixture
async def make_notes(session_factory):
    """
    Persist one note per title for `author`. The i-th title is created i
    minutes after BASE_TIME, so later titles are newer.
    """

    async def _make(author: User, titles: Iterable[str], **extra) -> List[Note]:
        notes = []
        async with session_factory() as session:
            for i, title in enumerate(titles, start=1):
                note = Note(
                    title=title,
                    content=f"Content of {title}",
                    author_id=author.id,
                    created_at=BASE_TIME + timedelta(minutes=i),
                    **extra,
                )
                session.add(note)
                notes.append(note)
            await session.commit()
        return notes

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(
            {"user_id": str(user.id), "email": user.email, "role": user.role}
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from careguide.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
