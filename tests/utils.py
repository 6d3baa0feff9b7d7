"""Test utilities for shortlink tests."""

import random
import string
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from shortlink.models.url import URLAnalytics, URLMapping, utcnow
from shortlink.repositories.base import DuplicateEntityError, RepositoryError


def random_string(length: int = 10) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choice(string.ascii_letters + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    domain = f"{random_string(8).lower()}.com"
    path = random_string(12)
    return f"https://{domain}/{path}"


async def create_test_mapping(
    db,
    original_url: Optional[str] = None,
    short_code: Optional[str] = None,
    access_count: int = 0,
    commit: bool = True,
) -> URLMapping:
    """Create and persist a test URLMapping (with its analytics row)."""
    mapping = URLMapping(
        original_url=original_url or random_url(),
        short_code=short_code or random_string(7),
        access_count=access_count,
    )
    db.add(mapping)
    await db.flush()
    db.add(URLAnalytics(url_id=mapping.id))
    if commit:
        await db.commit()
    else:
        await db.flush()
    await db.refresh(mapping)
    return mapping


def scripted_codes(codes: Iterable[str]):
    """Code generator returning ``codes`` in order."""
    iterator = iter(codes)
    return lambda: next(iterator)


class InMemoryURLStore:
    """URL store backed by dicts, with switchable failures.

    ``fail_on`` names store methods that raise RepositoryError when called.
    URLs in ``stale_reads`` are missed by the next find_by_url, as when a
    concurrent request inserts them right after the lookup.
    """

    def __init__(self):
        self.by_code: Dict[str, URLMapping] = {}
        self.last_accessed_by_id: Dict[int, datetime] = {}
        self.fail_on: set = set()
        self.stale_reads: set = set()
        self.calls: List[str] = []
        self.insert_attempts: List[str] = []
        self._next_id = 1

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail_on:
            raise RepositoryError(f"{method} failed")

    def add(self, short_code: str, original_url: str, access_count: int = 0) -> URLMapping:
        """Seed a mapping without going through insert_unique."""
        mapping = URLMapping(
            id=self._next_id,
            short_code=short_code,
            original_url=original_url,
            access_count=access_count,
        )
        self._next_id += 1
        self.by_code[short_code] = mapping
        return mapping

    async def find_by_url(self, original_url: str) -> Optional[URLMapping]:
        self._enter("find_by_url")
        if original_url in self.stale_reads:
            self.stale_reads.discard(original_url)
            return None
        matches = [m for m in self.by_code.values() if m.original_url == original_url]
        return min(matches, key=lambda m: m.id) if matches else None

    async def insert_unique(self, short_code: str, original_url: str) -> URLMapping:
        self._enter("insert_unique")
        self.insert_attempts.append(short_code)
        if short_code in self.by_code:
            raise DuplicateEntityError(URLMapping, "short_code", short_code)
        if any(m.original_url == original_url for m in self.by_code.values()):
            raise DuplicateEntityError(URLMapping, "original_url", original_url)
        return self.add(short_code, original_url)

    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        self._enter("find_by_code")
        return self.by_code.get(short_code)

    async def increment_counter(self, short_code: str) -> bool:
        self._enter("increment_counter")
        mapping = self.by_code.get(short_code)
        if mapping is None:
            return False
        mapping.access_count += 1
        self.last_accessed_by_id[mapping.id] = utcnow()
        return True

    async def last_accessed(self, url_id: int) -> Optional[datetime]:
        self._enter("last_accessed")
        return self.last_accessed_by_id.get(url_id)


class RecordingHook:
    """Operation hook collecting (operation, duration_ms, outcome) calls."""

    def __init__(self):
        self.calls: List[Tuple[str, float, str]] = []

    def __call__(self, operation: str, duration_ms: float, outcome: str) -> None:
        self.calls.append((operation, duration_ms, outcome))

    @property
    def outcomes(self) -> List[Tuple[str, str]]:
        return [(operation, outcome) for operation, _, outcome in self.calls]
