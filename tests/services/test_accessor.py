"""Tests for redirect resolution and analytics."""

import pytest

from shortlink.services.accessor import AccessService, AnalyticsReport
from shortlink.services.exceptions import StorageError


@pytest.mark.service
class TestAccessService:

    @pytest.mark.asyncio
    async def test_resolve_and_record_counts(self, memory_store, operation_hook):
        memory_store.add("abc1234", "https://example.com/a")
        service = AccessService(memory_store, on_operation=operation_hook)

        for _ in range(3):
            assert await service.resolve_and_record("abc1234") == "https://example.com/a"

        assert memory_store.by_code["abc1234"].access_count == 3
        assert operation_hook.outcomes == [("resolve", "ok")] * 3

    @pytest.mark.asyncio
    async def test_unknown_code(self, memory_store, operation_hook):
        service = AccessService(memory_store, on_operation=operation_hook)

        assert await service.resolve_and_record("missing") is None
        assert await service.analytics("missing") is None
        assert "increment_counter" not in memory_store.calls
        assert operation_hook.outcomes == [("resolve", "not_found"), ("analytics", "not_found")]

    @pytest.mark.asyncio
    async def test_codes_are_case_sensitive(self, memory_store):
        memory_store.add("AbC1234", "https://example.com/a")
        service = AccessService(memory_store)

        assert await service.resolve_and_record("abc1234") is None

    @pytest.mark.asyncio
    async def test_counter_failure_still_redirects(self, memory_store, operation_hook):
        memory_store.add("abc1234", "https://example.com/a")
        memory_store.fail_on.add("increment_counter")
        service = AccessService(memory_store, on_operation=operation_hook)

        assert await service.resolve_and_record("abc1234") == "https://example.com/a"
        assert memory_store.by_code["abc1234"].access_count == 0
        assert operation_hook.outcomes == [("resolve", "record_failed")]

    @pytest.mark.asyncio
    async def test_lookup_failure(self, memory_store):
        memory_store.fail_on.add("find_by_code")
        service = AccessService(memory_store)

        with pytest.raises(StorageError):
            await service.resolve_and_record("abc1234")
        with pytest.raises(StorageError):
            await service.analytics("abc1234")

    @pytest.mark.asyncio
    async def test_analytics_report(self, memory_store):
        mapping = memory_store.add("abc1234", "https://example.com/a", access_count=4)
        service = AccessService(memory_store)

        report = await service.analytics("abc1234")

        assert report == AnalyticsReport(
            short_code="abc1234",
            original_url="https://example.com/a",
            created_at=mapping.created_at,
            access_count=4,
            last_accessed=None,
        )

    @pytest.mark.asyncio
    async def test_analytics_is_read_only(self, memory_store):
        memory_store.add("abc1234", "https://example.com/a")
        service = AccessService(memory_store)

        await service.resolve_and_record("abc1234")
        first = await service.analytics("abc1234")
        second = await service.analytics("abc1234")

        assert first.access_count == second.access_count == 1
        assert first.last_accessed is not None
        assert second.last_accessed == first.last_accessed

    @pytest.mark.asyncio
    async def test_analytics_storage_failure(self, memory_store):
        memory_store.add("abc1234", "https://example.com/a")
        memory_store.fail_on.add("last_accessed")
        service = AccessService(memory_store)

        with pytest.raises(StorageError):
            await service.analytics("abc1234")
