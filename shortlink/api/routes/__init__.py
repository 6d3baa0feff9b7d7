"""Routes package initialization.

This module exports the route collection for the application.
"""

from fastapi import APIRouter

from shortlink.api.routes import shortener, redirect, health
from shortlink.core.config import settings

# Create root router
api_router = APIRouter()

# Health checks live at the root, ahead of the short code catch-all
api_router.include_router(health.router)

# Include shortener and analytics routes with API prefix
api_router.include_router(
    shortener.router,
    prefix=settings.API_PREFIX
)

# Include redirect routes at the root path (no prefix)
# This makes short URLs available directly at /{short_code}
api_router.include_router(
    redirect.router
)

__all__ = ["api_router"]
