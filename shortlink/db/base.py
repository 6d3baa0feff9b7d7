"""Async engine, session factory and the database health check.

One engine is shared by the process; pooling depends on ENVIRONMENT, with
NullPool under testing so no connection outlives an event loop.
"""

from typing import AsyncGenerator, Dict, Optional
import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from sqlalchemy.sql import text

from shortlink.core.config import EnvironmentType, settings

logger = logging.getLogger(__name__)


def get_engine_config(environment: EnvironmentType) -> Dict:
    """Engine keyword arguments for ``environment``."""
    if environment == EnvironmentType.TESTING:
        return {"echo": False, "poolclass": NullPool}

    return {
        "echo": settings.DB_ECHO and environment == EnvironmentType.DEVELOPMENT,
        "pool_size": settings.POSTGRES_POOL_SIZE,
        "max_overflow": settings.POSTGRES_POOL_MAX_OVERFLOW,
        "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
        "pool_recycle": settings.POSTGRES_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def get_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine for the configured (or given) database."""
    logger.info(f"Creating database engine for {settings.ENVIRONMENT.value} environment")
    return create_async_engine(
        database_url or settings.SQLALCHEMY_DATABASE_URI,
        **get_engine_config(settings.ENVIRONMENT),
    )


engine = get_engine()

# Loaded rows stay readable after commit; the routes serialize them afterwards
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session and close it on exit."""
    session = async_session_factory()
    try:
        yield session
    finally:
        await session.close()


class DatabaseHealthCheck:
    """Round-trip check used by the /db_health endpoint."""

    @staticmethod
    async def check_connection(session: AsyncSession) -> Dict:
        """Run ``SELECT 1`` and report status, latency and any error.

        Failures are reported in the result rather than raised.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "latency_ms": None, "error": str(e)}

        return {
            "status": "healthy",
            "latency_ms": int((loop.time() - started) * 1000),
            "error": None,
        }
