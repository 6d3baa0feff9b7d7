"""Test fixtures for the shortlink application."""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["OTEL_ENABLED"] = "false"
os.environ["MIGRATE_ON_STARTUP"] = "false"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="shortlink-test-logs-")
os.environ.pop("BASE_URL", None)

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from shortlink.db.session import get_db
from shortlink.main import app as main_app
# Import models to ensure they're registered with SQLModel metadata
from shortlink.models.url import URLAnalytics, URLMapping  # noqa: F401
from tests.utils import InMemoryURLStore, RecordingHook


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """SQLite database file private to one test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'shortlink.db'}"


@pytest_asyncio.fixture
async def test_engine(test_database_url):
    """Create a test database engine with the schema in place."""
    engine = create_async_engine(test_database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    """Session factory configured like the application's."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for repository tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_get_db(session_factory):
    """Override the get_db dependency with a fresh session per request."""
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    return _override_get_db


@pytest_asyncio.fixture
async def client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the application in-process."""
    main_app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=main_app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    main_app.dependency_overrides.clear()


@pytest.fixture
def memory_store() -> InMemoryURLStore:
    """Dict-backed URL store for service tests."""
    return InMemoryURLStore()


@pytest.fixture
def operation_hook() -> RecordingHook:
    """Operation hook that remembers every call."""
    return RecordingHook()
