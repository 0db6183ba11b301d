"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Test settings must be in place before anything touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from fluxstack.database import Base, get_db
from fluxstack.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import fluxstack.auth.models  # noqa: F401
import fluxstack.posts.models  # noqa: F401

# ── SQLite compat: compile PG-specific types ────────────────────────


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

DEFAULT_PASSWORD = "SecurePassword123!"


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from fluxstack.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_user(
    *,
    email: str = "author@example.com",
    name: Optional[str] = "Post Author",
    password: str = DEFAULT_PASSWORD,
) -> dict:
    from fluxstack.auth.service import hash_password

    return dict(
        id=uuid.uuid4(),
        email=email,
        name=name,
        password_hash=hash_password(password),
        email_verified=False,
    )


async def create_user(db: AsyncSession, **kwargs) -> dict:
    """Insert and commit a user; returns its data dict."""
    from fluxstack.auth.models import User

    data = _make_user(**kwargs)
    db.add(User(**data))
    await db.commit()
    return data


async def create_session_headers(db: AsyncSession, user_id: uuid.UUID) -> dict[str, str]:
    """Persist a session for *user_id* and return Bearer headers."""
    from fluxstack.auth.models import User
    from fluxstack.auth.service import create_session

    user = await db.get(User, user_id)
    token = await create_session(db, user, ip="127.0.0.1", user_agent="pytest")
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def test_user(db) -> dict:
    """A committed user with the default password."""
    return await create_user(db)


@pytest.fixture
async def other_user(db) -> dict:
    return await create_user(db, email="reader@example.com", name="Second User")


@pytest.fixture
async def auth_headers(db, test_user) -> dict[str, str]:
    return await create_session_headers(db, test_user["id"])


@pytest.fixture
async def other_headers(db, other_user) -> dict[str, str]:
    return await create_session_headers(db, other_user["id"])


# ── Clock ───────────────────────────────────────────────────────────

class FakeClock:
    """Manually advanced clock for the attempt tracker."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
