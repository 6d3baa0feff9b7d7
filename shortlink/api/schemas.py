"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _assume_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ShortenRequest(BaseModel):
    """Request schema for shortening a URL.

    The URL is kept as a plain string so the service's own validator
    decides what is acceptable.
    """
    url: str = Field(..., description="The URL to shorten")


class ShortenResponse(BaseModel):
    """Response schema for a shortened URL."""
    short_code: str
    short_url: str  # Full URL including base domain
    original_url: str  # Normalized form that was stored
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _assume_utc(v)


class AnalyticsResponse(BaseModel):
    """Response schema for access analytics of a short code."""
    short_code: str
    original_url: str
    created_at: datetime
    transition_count: int
    last_accessed: Optional[datetime] = None

    @field_validator("created_at", "last_accessed")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _assume_utc(v)


class ErrorResponse(BaseModel):
    """Response schema for errors."""
    detail: str
    error_code: Optional[str] = None  # Validation rule that rejected the URL, on 400
