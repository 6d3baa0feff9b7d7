"""URL mapping data models.

This module defines the URLMapping model for storing shortened URLs and the
URLAnalytics model holding per-mapping access recency.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class URLMappingBase(SQLModel):
    """Base model for URL mapping data."""

    short_code: str = Field(
        max_length=16,
        unique=True,
        index=True,
        description="Unique code for the shortened URL",
    )
    original_url: str = Field(
        unique=True,
        index=True,
        description="The normalized URL to redirect to",
    )


class URLMapping(URLMappingBase, table=True):
    """
    Mapping between a short code and the normalized URL it redirects to.

    Only access_count changes after creation; it is bumped with an atomic
    UPDATE by the repository, never read-modify-written.
    """

    __tablename__ = "urls"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Timestamp when this mapping was created",
    )
    access_count: int = Field(
        default=0,
        ge=0,
        description="Number of successful redirects",
    )


class URLAnalytics(SQLModel, table=True):
    """Recency record for a mapping, created alongside it."""

    __tablename__ = "analytics"

    id: Optional[int] = Field(default=None, primary_key=True)
    url_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("urls.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        description="Foreign key reference to the URL mapping",
    )
    last_accessed: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="Timestamp of the most recent redirect",
    )

    __table_args__ = (
        # Per-URL recency lookups
        Index("ix_analytics_url_id_last_accessed", "url_id", "last_accessed"),
    )
