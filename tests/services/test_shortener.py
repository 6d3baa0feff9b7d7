"""Tests for the shortening service over an in-memory store."""

import pytest

from shortlink.repositories.base import DuplicateEntityError
from shortlink.services.exceptions import (
    InvalidURLError,
    ShortCodeGenerationError,
    StorageError,
    ValidationRule,
)
from shortlink.services.observability import timed_operation
from shortlink.services.shortener import (
    Exhausted,
    Inserted,
    ShortenerService,
    insert_with_unique_code,
)
from tests.utils import scripted_codes


@pytest.mark.service
class TestShortenerService:

    @pytest.mark.asyncio
    async def test_shorten_creates_mapping(self, memory_store, operation_hook):
        service = ShortenerService(
            memory_store,
            code_generator=scripted_codes(["abc1234"]),
            on_operation=operation_hook,
        )

        result = await service.shorten("HTTPS://Example.com/page/")

        assert result.created is True
        assert result.mapping.short_code == "abc1234"
        assert result.mapping.original_url == "https://example.com/page"
        assert result.mapping.access_count == 0
        assert operation_hook.outcomes == [("shorten", "created")]

    @pytest.mark.asyncio
    async def test_shorten_default_generator(self, memory_store):
        result = await ShortenerService(memory_store).shorten("https://example.com")

        assert len(result.mapping.short_code) == 7
        assert result.mapping.short_code.isalnum()

    @pytest.mark.asyncio
    async def test_shorten_is_idempotent(self, memory_store, operation_hook):
        service = ShortenerService(
            memory_store,
            code_generator=scripted_codes(["first01", "second2"]),
            on_operation=operation_hook,
        )

        first = await service.shorten("https://example.com/a")
        second = await service.shorten("https://EXAMPLE.com:443/a/")

        assert second.created is False
        assert second.mapping.short_code == first.mapping.short_code
        assert memory_store.insert_attempts == ["first01"]
        assert operation_hook.outcomes == [("shorten", "created"), ("shorten", "existing")]

    @pytest.mark.asyncio
    async def test_concurrent_shorten_of_same_url(self, memory_store, operation_hook):
        url = "https://example.com/raced"
        memory_store.add("first01", url)
        memory_store.stale_reads.add(url)
        service = ShortenerService(
            memory_store,
            code_generator=scripted_codes(["second2"]),
            on_operation=operation_hook,
        )

        result = await service.shorten(url)

        assert result.created is False
        assert result.mapping.short_code == "first01"
        assert memory_store.insert_attempts == ["second2"]
        assert "second2" not in memory_store.by_code
        assert operation_hook.outcomes == [("shorten", "existing")]

    @pytest.mark.asyncio
    async def test_distinct_urls_get_distinct_codes(self, memory_store):
        service = ShortenerService(memory_store)

        codes = {
            (await service.shorten(f"https://example.com/{i}")).mapping.short_code
            for i in range(20)
        }

        assert len(codes) == 20

    @pytest.mark.asyncio
    async def test_collision_retries(self, memory_store):
        memory_store.add("taken01", "https://other.example/")
        service = ShortenerService(
            memory_store,
            code_generator=scripted_codes(["taken01", "taken01", "fresh01"]),
        )

        result = await service.shorten("https://example.com/new")

        assert result.mapping.short_code == "fresh01"
        assert memory_store.insert_attempts == ["taken01", "taken01", "fresh01"]
        assert memory_store.by_code["taken01"].original_url == "https://other.example/"

    @pytest.mark.asyncio
    async def test_collisions_exhaust_attempts(self, memory_store, operation_hook):
        memory_store.add("taken01", "https://other.example/")
        service = ShortenerService(
            memory_store,
            code_generator=lambda: "taken01",
            max_attempts=3,
            on_operation=operation_hook,
        )

        with pytest.raises(ShortCodeGenerationError) as excinfo:
            await service.shorten("https://example.com/new")

        assert excinfo.value.attempts == 3
        assert len(memory_store.insert_attempts) == 3
        assert operation_hook.outcomes == [("shorten", "ShortCodeGenerationError")]

    @pytest.mark.asyncio
    async def test_invalid_url_touches_no_storage(self, memory_store):
        service = ShortenerService(memory_store)

        with pytest.raises(InvalidURLError) as excinfo:
            await service.shorten("ftp://example.com/file")

        assert excinfo.value.rule == ValidationRule.UNSUPPORTED_SCHEME
        assert memory_store.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failing", ["find_by_url", "insert_unique"])
    async def test_storage_failure(self, memory_store, failing):
        memory_store.fail_on.add(failing)
        service = ShortenerService(memory_store)

        with pytest.raises(StorageError):
            await service.shorten("https://example.com/x")

    def test_max_attempts_must_be_positive(self, memory_store):
        with pytest.raises(ValueError):
            ShortenerService(memory_store, max_attempts=0)


@pytest.mark.service
class TestInsertWithUniqueCode:

    @pytest.mark.asyncio
    async def test_inserted_reports_attempts(self, memory_store):
        memory_store.add("aaaaaaa", "https://a.example/")

        outcome = await insert_with_unique_code(
            memory_store, "https://b.example/", scripted_codes(["aaaaaaa", "bbbbbbb"]), 5
        )

        assert isinstance(outcome, Inserted)
        assert outcome.attempts == 2
        assert outcome.mapping.short_code == "bbbbbbb"

    @pytest.mark.asyncio
    async def test_exhausted(self, memory_store):
        memory_store.add("aaaaaaa", "https://a.example/")

        outcome = await insert_with_unique_code(
            memory_store, "https://b.example/", lambda: "aaaaaaa", 2
        )

        assert outcome == Exhausted(attempts=2)

    @pytest.mark.asyncio
    async def test_duplicate_url_is_not_retried(self, memory_store):
        memory_store.add("aaaaaaa", "https://b.example/")

        with pytest.raises(DuplicateEntityError) as excinfo:
            await insert_with_unique_code(
                memory_store, "https://b.example/", scripted_codes(["bbbbbbb", "ccccccc"]), 5
            )

        assert excinfo.value.field_name == "original_url"
        assert memory_store.insert_attempts == ["bbbbbbb"]


@pytest.mark.service
class TestTimedOperation:

    def test_reports_outcome(self, operation_hook):
        with timed_operation(operation_hook, "op") as timer:
            timer.outcome = "done"

        ((operation, duration_ms, outcome),) = operation_hook.calls
        assert operation == "op"
        assert outcome == "done"
        assert duration_ms >= 0

    def test_reports_exception_and_reraises(self, operation_hook):
        with pytest.raises(KeyError):
            with timed_operation(operation_hook, "op"):
                raise KeyError("x")

        assert operation_hook.outcomes == [("op", "KeyError")]

    def test_no_hook(self):
        with timed_operation(None, "op") as timer:
            pass
        assert timer.outcome == "ok"
