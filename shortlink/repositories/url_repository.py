"""URL Repository for the shortlink application.

This module provides the URLRepository class for database operations related to
URLMapping models. Following the Repository pattern, it abstracts database
interactions for URL shortening operations.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlink.models.url import URLAnalytics, URLMapping, utcnow
from shortlink.repositories.base import BaseRepository, RepositoryError, DuplicateEntityError

logger = logging.getLogger(__name__)


UNIQUE_FIELDS = ("short_code", "original_url")


def unique_violation_field(error: IntegrityError) -> Optional[str]:
    """The urls column whose unique index an IntegrityError violated, if any.

    PostgreSQL names the index (``ix_urls_short_code``), SQLite the column
    (``urls.short_code``). The earliest mention wins, since PostgreSQL
    appends the offending value, which is free text.
    """
    message = str(error.orig if error.orig is not None else error).lower()
    if "unique" not in message and "duplicate" not in message:
        return None

    positions = {}
    for field in UNIQUE_FIELDS:
        found = [message.find(token) for token in (f"ix_urls_{field}", f"urls.{field}")]
        found = [position for position in found if position >= 0]
        if found:
            positions[field] = min(found)
    return min(positions, key=positions.get) if positions else None


class URLRepository(BaseRepository[URLMapping]):
    """
    Repository for URLMapping model database operations.

    This repository provides methods for creating and retrieving mappings and
    for recording redirects against them.
    """

    def __init__(self):
        """Initialize the repository with the URLMapping model type."""
        super().__init__(URLMapping)

    async def create_mapping(
        self,
        db: AsyncSession,
        short_code: str,
        original_url: str
    ) -> URLMapping:
        """
        Insert a new mapping together with its analytics row.

        The unique indexes decide collisions on short_code and original_url;
        no existence check is made beforehand. On any failure the session is
        rolled back so it stays usable for another attempt.

        Args:
            db: Database session
            short_code: Candidate short code
            original_url: Normalized URL

        Returns:
            The created URLMapping entity

        Raises:
            DuplicateEntityError: If the short code or the URL already exists
            RepositoryError: On other database errors
        """
        try:
            mapping = URLMapping(short_code=short_code, original_url=original_url)
            db.add(mapping)
            await db.flush()

            db.add(URLAnalytics(url_id=mapping.id))
            await db.flush()
            await db.refresh(mapping)
            return mapping
        except IntegrityError as e:
            await db.rollback()
            field = unique_violation_field(e)
            if field is not None:
                value = short_code if field == "short_code" else original_url
                raise DuplicateEntityError(self.model_type, field, value) from e
            logger.error(f"Integrity error creating URL mapping: {e}")
            raise RepositoryError(f"Database error creating URL mapping: {e}") from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error creating URL mapping: {e}")
            raise RepositoryError(f"Database error creating URL mapping: {e}") from e

    async def get_by_short_code(self, db: AsyncSession, short_code: str) -> Optional[URLMapping]:
        """
        Find a mapping by its short code.

        Args:
            db: Database session
            short_code: The unique short code to look up

        Returns:
            The URLMapping if found, None otherwise

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = (
                select(self.model_type)
                .where(self.model_type.short_code == short_code)
                # Counter updates bypass the identity map
                .execution_options(populate_existing=True)
            )
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving URL by short code: {e}") from e

    async def get_by_original_url(self, db: AsyncSession, original_url: str) -> Optional[URLMapping]:
        """
        Find the oldest mapping for a normalized URL.

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = (
                select(self.model_type)
                .where(self.model_type.original_url == original_url)
                .order_by(self.model_type.id)
                .limit(1)
                .execution_options(populate_existing=True)
            )
            result = await db.execute(query)
            return result.scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving URL by original URL: {e}") from e

    async def increment_access_count(
        self,
        db: AsyncSession,
        short_code: str,
        accessed_at: Optional[datetime] = None
    ) -> bool:
        """
        Increment the access count for a mapping and stamp its last access.

        Both are direct UPDATE statements so concurrent redirects never lose
        increments.

        Args:
            db: Database session
            short_code: Short code of the mapping that was accessed
            accessed_at: Access time, defaults to now

        Returns:
            True if a mapping was updated, False if the code does not exist

        Raises:
            RepositoryError: On database errors
        """
        accessed_at = accessed_at or utcnow()
        try:
            stmt = (
                update(self.model_type)
                .where(self.model_type.short_code == short_code)
                .values(access_count=self.model_type.access_count + 1)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            if result.rowcount == 0:
                return False

            url_id = (
                select(self.model_type.id)
                .where(self.model_type.short_code == short_code)
                .scalar_subquery()
            )
            await db.execute(
                update(URLAnalytics)
                .where(URLAnalytics.url_id == url_id)
                .values(last_accessed=accessed_at)
                .execution_options(synchronize_session=False)
            )
            return True
        except SQLAlchemyError as e:
            await db.rollback()
            raise RepositoryError(f"Error incrementing access count: {e}") from e

    async def get_last_accessed(self, db: AsyncSession, url_id: int) -> Optional[datetime]:
        """
        Get the most recent redirect time recorded for a mapping.

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(URLAnalytics.last_accessed).where(URLAnalytics.url_id == url_id)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving analytics for URL {url_id}: {e}") from e
