"""Redirect and analytics service for the shortlink application."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shortlink.models.url import URLMapping
from shortlink.repositories.base import RepositoryError
from shortlink.services.exceptions import StorageError
from shortlink.services.observability import OperationHook, timed_operation
from shortlink.services.store import URLStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsReport:
    """Read-only view of a mapping's access statistics."""
    short_code: str
    original_url: str
    created_at: datetime
    access_count: int
    last_accessed: Optional[datetime] = None


class AccessService:
    """
    Service resolving short codes for redirects and analytics.

    An unknown code is a normal outcome (None), never an error.
    """

    def __init__(self, store: URLStore, on_operation: Optional[OperationHook] = None):
        self.store = store
        self.on_operation = on_operation

    async def resolve(self, short_code: str) -> Optional[URLMapping]:
        """
        Look up a mapping without recording an access.

        Raises:
            StorageError: If the lookup fails
        """
        try:
            return await self.store.find_by_code(short_code)
        except RepositoryError as e:
            logger.error(f"Error retrieving URL by code: {e}")
            raise StorageError(f"Failed to retrieve URL with code '{short_code}'") from e

    async def resolve_and_record(self, short_code: str) -> Optional[str]:
        """
        Look up a mapping for a redirect and count the access.

        Counting is best-effort: if the increment fails it is logged and the
        redirect target is still returned.

        Returns:
            The original URL, or None if the code is unknown

        Raises:
            StorageError: If the lookup itself fails
        """
        with timed_operation(self.on_operation, "resolve") as timer:
            mapping = await self.resolve(short_code)
            if mapping is None:
                timer.outcome = "not_found"
                return None
            # The store rolls back on failure, which expires loaded rows
            original_url = mapping.original_url

            try:
                recorded = await self.store.increment_counter(short_code)
            except RepositoryError as e:
                timer.outcome = "record_failed"
                logger.warning(f"Failed to record access for '{short_code}': {e}")
            else:
                if not recorded:
                    timer.outcome = "record_missed"
                    logger.warning(f"Access for '{short_code}' was not recorded; mapping vanished")

            return original_url

    async def analytics(self, short_code: str) -> Optional[AnalyticsReport]:
        """
        Build the analytics report for a short code without mutating anything.

        Returns:
            AnalyticsReport, or None if the code is unknown

        Raises:
            StorageError: If the lookup fails
        """
        with timed_operation(self.on_operation, "analytics") as timer:
            mapping = await self.resolve(short_code)
            if mapping is None:
                timer.outcome = "not_found"
                return None

            try:
                last_accessed = await self.store.last_accessed(mapping.id)
            except RepositoryError as e:
                raise StorageError(f"Failed to retrieve analytics for '{short_code}'") from e

            return AnalyticsReport(
                short_code=mapping.short_code,
                original_url=mapping.original_url,
                created_at=mapping.created_at,
                access_count=mapping.access_count,
                last_accessed=last_accessed,
            )
