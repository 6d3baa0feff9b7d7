"""Storage capability required by the shortening and redirect services."""

from datetime import datetime
from typing import Optional, Protocol

from shortlink.models.url import URLMapping


class URLStore(Protocol):
    """
    The narrow set of persistence operations the services depend on.

    Implementations must make ``insert_unique`` atomic against uniqueness
    constraints on short_code and original_url, raising DuplicateEntityError
    (with ``field_name`` set) when either is taken. ``increment_counter`` is an
    atomic increment that is durable when it returns. Any other failure is
    reported as RepositoryError.
    """

    async def find_by_url(self, original_url: str) -> Optional[URLMapping]:
        ...

    async def insert_unique(self, short_code: str, original_url: str) -> URLMapping:
        ...

    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        ...

    async def increment_counter(self, short_code: str) -> bool:
        ...

    async def last_accessed(self, url_id: int) -> Optional[datetime]:
        ...
