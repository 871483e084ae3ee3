"""Shared test fixtures.

Database tests run against the PostgreSQL instance at SKILLSAGE_DATABASE_URL
after ``alembic upgrade head``; every test starts from empty tables with the
badge catalog seeded.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skillsage.config import get_settings
from skillsage.database import close_db, get_session_factory, init_db
from skillsage.gamification.seed import seed_badges
from skillsage.main import create_app
from skillsage.redis_client import close_redis, get_redis, init_redis

_TABLES = (
    "gifts",
    "cashout_requests",
    "user_purchases",
    "store_items",
    "user_badges",
    "badges",
    "gamification_events",
    "accounts",
)

_migrated = False


def _ensure_migrations() -> None:
    """Apply Alembic migrations once per test run."""
    global _migrated  # noqa: PLW0603
    if _migrated:
        return
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        capture_output=True,
    )
    _migrated = True


async def _reset_database() -> None:
    factory = get_session_factory()
    async with factory() as session:
        await session.execute(text(f"TRUNCATE TABLE {', '.join(_TABLES)} CASCADE"))
        await session.commit()
        await seed_badges(session)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Migrated, emptied database; yields the session factory."""
    _ensure_migrations()
    settings = get_settings()
    await init_db(settings.database_url)
    await _reset_database()
    yield get_session_factory()
    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session on a clean database."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client over a clean database. Redis is not initialized."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[object, None]:
    """Redis client on a flushed database; skips when no Redis is reachable."""
    settings = get_settings()
    await init_redis(settings.redis_url)
    rc = get_redis()
    try:
        await rc.ping()
    except Exception:
        await close_redis()
        pytest.skip("Redis not available")
    await rc.flushdb()
    yield rc
    await rc.flushdb()
    await close_redis()

