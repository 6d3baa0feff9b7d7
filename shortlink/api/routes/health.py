"""Health check endpoints for monitoring application status."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.db.base import DatabaseHealthCheck
from shortlink.db.session import get_db

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_class=PlainTextResponse,
    summary="Liveness check",
)
async def health_check():
    """Simple check that the application is running."""
    return PlainTextResponse("OK")


@router.get(
    "/db_health",
    response_class=PlainTextResponse,
    summary="Database connectivity check",
    responses={503: {"description": "Database unreachable"}},
)
async def db_health(db: AsyncSession = Depends(get_db)):
    """Check that the database answers a trivial query."""
    result = await DatabaseHealthCheck.check_connection(db)
    if result["status"] != "healthy":
        return PlainTextResponse("DB unavailable", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return PlainTextResponse("DB OK")
