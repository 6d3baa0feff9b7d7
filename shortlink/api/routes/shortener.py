"""Shortening and analytics endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.api import schemas
from shortlink.api.dependencies import get_access_service, get_base_url, get_shortener_service
from shortlink.db.session import get_db, db_transaction
from shortlink.services.accessor import AccessService
from shortlink.services.exceptions import (
    InvalidURLError,
    ShortCodeGenerationError,
    StorageError,
)
from shortlink.services.shortener import ShortenerService

router = APIRouter(tags=["shortener"])


@router.post(
    "/shorten",
    response_model=schemas.ShortenResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Invalid, disallowed or too long URL"},
        500: {"model": schemas.ErrorResponse, "description": "Short code could not be stored"},
    }
)
@db_transaction()
async def shorten_url(
    payload: schemas.ShortenRequest,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
    base_url: str = Depends(get_base_url)
):
    """Shorten a URL; submitting the same URL again returns the same short code."""
    try:
        result = await shortener_service.shorten(payload.url)
    except InvalidURLError as e:
        logger.bind(rule=e.rule.value).info(f"Rejected URL: {e}")
        error = schemas.ErrorResponse(detail=f"Invalid URL: {e}", error_code=e.rule.value)
        return JSONResponse(status_code=400, content=error.model_dump())
    except ShortCodeGenerationError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail="Could not allocate a short code, please retry")
    except StorageError:
        raise HTTPException(status_code=500, detail="Internal server error")

    mapping = result.mapping
    return schemas.ShortenResponse(
        short_code=mapping.short_code,
        short_url=f"{base_url}/{mapping.short_code}",
        original_url=mapping.original_url,
        created_at=mapping.created_at,
    )


@router.get(
    "/analytics/{short_code}",
    response_model=schemas.AnalyticsResponse,
    responses={
        404: {"model": schemas.ErrorResponse, "description": "Short URL not found"}
    }
)
async def get_analytics(
    short_code: str = Path(..., description="The short code of the URL"),
    access_service: AccessService = Depends(get_access_service),
):
    """Access statistics for a short code; reading them does not count as an access."""
    try:
        report = await access_service.analytics(short_code)
    except StorageError:
        raise HTTPException(status_code=500, detail="Internal server error")

    if report is None:
        raise HTTPException(status_code=404, detail="Short URL not found")

    return schemas.AnalyticsResponse(
        short_code=report.short_code,
        original_url=report.original_url,
        created_at=report.created_at,
        transition_count=report.access_count,
        last_accessed=report.last_accessed,
    )
