"""URL shortening service for the shortlink application.

This module contains the ShortenerService class which implements the
shorten operation: validate, normalize, reuse an existing mapping for the
same URL, or insert a new one under a freshly generated code with a bounded
number of collision retries.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from shortlink.models.url import URLMapping
from shortlink.repositories.base import DuplicateEntityError, RepositoryError
from shortlink.services.codes import CodeGenerator
from shortlink.services.exceptions import ShortCodeGenerationError, StorageError
from shortlink.services.observability import OperationHook, timed_operation
from shortlink.services.store import URLStore
from shortlink.services.url_validator import URLValidator, get_url_validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inserted:
    """A mapping was stored on attempt number ``attempts``."""
    mapping: URLMapping
    attempts: int


@dataclass(frozen=True)
class Exhausted:
    """All ``attempts`` collided with existing codes."""
    attempts: int


InsertOutcome = Union[Inserted, Exhausted]


@dataclass(frozen=True)
class ShortenResult:
    """Outcome of shorten: the mapping and whether this call created it."""
    mapping: URLMapping
    created: bool


async def insert_with_unique_code(
    store: URLStore,
    original_url: str,
    generate_code: Callable[[], str],
    max_attempts: int,
) -> InsertOutcome:
    """
    Insert ``original_url`` under a generated code, retrying on collisions.

    The store's unique constraint on short_code decides collisions. Other
    store errors, including a DuplicateEntityError on original_url, propagate
    unchanged on the first occurrence.

    Args:
        store: Store to insert into
        original_url: Normalized URL
        generate_code: Produces a candidate code per attempt
        max_attempts: Upper bound on insert attempts

    Returns:
        Inserted on success, Exhausted if every attempt collided

    Raises:
        DuplicateEntityError: If another request stored the same URL meanwhile
        RepositoryError: On any store failure other than a collision
    """
    for attempt in range(1, max_attempts + 1):
        candidate_code = generate_code()
        try:
            mapping = await store.insert_unique(candidate_code, original_url)
        except DuplicateEntityError as e:
            if e.field_name != "short_code":
                raise
            logger.info(f"Short code collision on attempt {attempt}/{max_attempts}")
            continue
        return Inserted(mapping=mapping, attempts=attempt)
    return Exhausted(attempts=max_attempts)


class ShortenerService:
    """
    Service for URL shortening business logic.

    Shortening is idempotent per normalized URL: a second request for the
    same destination returns the mapping created by the first.
    """

    def __init__(
        self,
        store: URLStore,
        code_generator: Optional[Callable[[], str]] = None,
        validator: Optional[URLValidator] = None,
        max_attempts: int = 5,
        on_operation: Optional[OperationHook] = None,
    ):
        """
        Initialize the URL shortening service.

        Args:
            store: Persistence capability
            code_generator: Candidate code source, base62 length 7 by default
            validator: URL validator, the settings-configured one by default
            max_attempts: Insert attempts before reporting exhaustion
            on_operation: Optional hook receiving (operation, duration_ms, outcome)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.code_generator = code_generator or CodeGenerator()
        self.validator = validator or get_url_validator()
        self.max_attempts = max_attempts
        self.on_operation = on_operation

    async def shorten(self, raw_url: str) -> ShortenResult:
        """
        Shorten a URL, reusing the existing mapping when there is one.

        Args:
            raw_url: URL as submitted by the client

        Returns:
            ShortenResult with the mapping; ``created`` is False on reuse

        Raises:
            InvalidURLError: If the URL fails validation (no store access happens)
            ShortCodeGenerationError: If every attempt collided
            StorageError: If the store fails for any other reason
        """
        with timed_operation(self.on_operation, "shorten") as timer:
            self.validator.validate(raw_url)
            normalized_url = self.validator.normalize(raw_url)

            try:
                existing = await self.store.find_by_url(normalized_url)
                if existing is not None:
                    timer.outcome = "existing"
                    return ShortenResult(mapping=existing, created=False)

                try:
                    outcome = await insert_with_unique_code(
                        self.store,
                        normalized_url,
                        self.code_generator,
                        self.max_attempts,
                    )
                except DuplicateEntityError:
                    # A concurrent shorten of the same URL won the insert
                    concurrent = await self.store.find_by_url(normalized_url)
                    if concurrent is None:
                        raise
                    timer.outcome = "existing"
                    return ShortenResult(mapping=concurrent, created=False)
            except RepositoryError as e:
                logger.error(f"Storage failure while shortening URL: {e}")
                raise StorageError("Failed to store short URL") from e

            if isinstance(outcome, Exhausted):
                keyspace = getattr(self.code_generator, "keyspace", "unknown")
                logger.error(
                    f"Short code space exhausted after {outcome.attempts} attempts "
                    f"(keyspace {keyspace})"
                )
                raise ShortCodeGenerationError(outcome.attempts)

            timer.outcome = "created"
            logger.info(
                f"Created short code {outcome.mapping.short_code} after {outcome.attempts} attempt(s)"
            )
            return ShortenResult(mapping=outcome.mapping, created=True)
