"""Tests for the per-language reference cache."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from tutor.services.reference_cache import ReferenceCache
from tutor.services.references import ReferenceDocument
from tutor.utils.exceptions import ExtractionError


KLINGON = ReferenceDocument(language="klingon", name="klingon-dictionary", path=Path("data/klingon.pdf"))
ELVISH = ReferenceDocument(language="elvish", name="elvish-grammar", path=Path("data/elvish.pdf"))


class TestReferenceCache:

    @pytest.mark.asyncio
    async def test_extracts_once_across_sequential_calls(self):
        loader = AsyncMock(return_value="dictionary text")
        cache = ReferenceCache(loader=loader)

        results = [await cache.get_reference_text(KLINGON) for _ in range(5)]

        assert results == ["dictionary text"] * 5
        assert loader.await_count == 1
        loader.assert_awaited_once_with(KLINGON.path)

    @pytest.mark.asyncio
    async def test_concurrent_first_requests_share_one_extraction(self):
        calls = 0

        async def slow_loader(path):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "dictionary text"

        cache = ReferenceCache(loader=slow_loader)
        results = await asyncio.gather(*(cache.get_reference_text(KLINGON) for _ in range(10)))

        assert set(results) == {"dictionary text"}
        assert calls == 1

    @pytest.mark.asyncio
    async def test_failure_returns_none_and_is_retried_later(self):
        loader = AsyncMock(side_effect=[ExtractionError("Failed to read PDF content"), "recovered"])
        cache = ReferenceCache(loader=loader)

        assert await cache.get_reference_text(KLINGON) is None
        assert "klingon" not in cache

        assert await cache.get_reference_text(KLINGON) == "recovered"
        assert cache.peek("Klingon") == "recovered"
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_text_is_not_cached(self):
        loader = AsyncMock(return_value="")
        cache = ReferenceCache(loader=loader)

        assert await cache.get_reference_text(KLINGON) is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_languages_are_cached_separately(self):
        async def loader(path):
            return f"text of {Path(path).stem}"

        cache = ReferenceCache(loader=loader)

        assert await cache.get_reference_text(KLINGON) == "text of klingon"
        assert await cache.get_reference_text(ELVISH) == "text of elvish"
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_key_is_case_insensitive(self):
        loader = AsyncMock(return_value="text")
        cache = ReferenceCache(loader=loader)
        upper = ReferenceDocument(language="KLINGON", name="klingon-dictionary", path=KLINGON.path)

        await cache.get_reference_text(KLINGON)
        await cache.get_reference_text(upper)

        assert loader.await_count == 1
        assert "Klingon" in cache
