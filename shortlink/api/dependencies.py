"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access the URL store and service instances.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.core.config import settings
from shortlink.core.telemetry import record_operation
from shortlink.db.session import get_db
from shortlink.repositories.store import SQLURLStore
from shortlink.repositories.url_repository import URLRepository
from shortlink.services.accessor import AccessService
from shortlink.services.codes import CodeGenerator
from shortlink.services.shortener import ShortenerService
from shortlink.services.store import URLStore


async def get_url_repository() -> URLRepository:
    """Get an instance of the URL repository."""
    return URLRepository()


async def get_url_store(
    db: AsyncSession = Depends(get_db),
    url_repo: URLRepository = Depends(get_url_repository),
) -> URLStore:
    """Get a URL store bound to the request's database session."""
    return SQLURLStore(db, url_repo)


async def get_shortener_service(
    store: URLStore = Depends(get_url_store),
) -> ShortenerService:
    """Get an instance of the URL shortening service."""
    return ShortenerService(
        store=store,
        code_generator=CodeGenerator(settings.URL_CODE_LENGTH, settings.URL_CODE_CHARS),
        max_attempts=settings.URL_CODE_MAX_ATTEMPTS,
        on_operation=record_operation,
    )


async def get_access_service(
    store: URLStore = Depends(get_url_store),
) -> AccessService:
    """Get an instance of the redirect/analytics service."""
    return AccessService(store=store, on_operation=record_operation)


def get_base_url(request: Request) -> str:
    """Get the base URL for shortened links."""
    if settings.BASE_URL:
        return settings.BASE_URL.rstrip("/")
    return str(request.base_url).rstrip("/")
