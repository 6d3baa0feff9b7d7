"""SQL implementation of the URL store used by the services."""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.models.url import URLMapping
from shortlink.repositories.base import RepositoryError
from shortlink.repositories.url_repository import URLRepository

logger = logging.getLogger(__name__)


class SQLURLStore:
    """URLStore bound to one database session.

    A thin adapter: the session is per request, the repository is stateless.
    Errors are the repository's (DuplicateEntityError on a unique violation,
    RepositoryError otherwise).
    """

    def __init__(self, db: AsyncSession, repository: Optional[URLRepository] = None):
        self.db = db
        self.repository = repository or URLRepository()

    async def find_by_url(self, original_url: str) -> Optional[URLMapping]:
        return await self.repository.get_by_original_url(self.db, original_url)

    async def insert_unique(self, short_code: str, original_url: str) -> URLMapping:
        return await self.repository.create_mapping(self.db, short_code, original_url)

    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        return await self.repository.get_by_short_code(self.db, short_code)

    async def increment_counter(self, short_code: str) -> bool:
        """Record an access and commit it.

        The commit happens here so that a failure to persist the access
        surfaces as RepositoryError, like any other counting failure.
        """
        recorded = await self.repository.increment_access_count(self.db, short_code)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit access for '{short_code}': {e}")
            await self.db.rollback()
            raise RepositoryError(f"Error committing access count: {e}") from e
        return recorded

    async def last_accessed(self, url_id: int) -> Optional[datetime]:
        return await self.repository.get_last_accessed(self.db, url_id)
