"""Shared test fixtures for the Bloomhabit test suite."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.security import hash_password
# Import all models so their metadata is registered on Base
import app.models  # noqa: F401
from app.models.user import User
from app.services.cache import CacheService


@pytest_asyncio.fixture
async def session_factory():
    """
    Session factory bound to a fresh in-memory SQLite database.

    StaticPool keeps one connection so every session sees the same data.
    Creates all tables before the test, drops them after.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(session_factory):
    """Provide an in-memory SQLite async session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_cache_counters():
    CacheService.reset_counters()
    yield


async def make_user(session: AsyncSession, email: str = "gardener@example.com", **fields) -> User:
    user = User(
        email=email,
        username=fields.pop("username", email.split("@")[0]),
        password_hash=fields.pop("password_hash", hash_password("password123")),
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def user(async_session):
    return await make_user(async_session)


@pytest_asyncio.fixture
async def other_user(async_session):
    return await make_user(async_session, email="neighbour@example.com")
