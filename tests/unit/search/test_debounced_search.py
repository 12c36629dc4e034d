"""Tests for the debounced, race-safe search pipeline."""

import asyncio
from typing import Dict, List

import pytest

from session_client.api_clients.base_client import ApiError, NetworkError
from session_client.models import SearchHit, SearchResult
from session_client.search.debounced_search import (
    SEARCH_FAILED,
    DebouncedSearch,
    SearchState,
)


def result_for(query: str, count: int = 1) -> SearchResult:
    hits = [
        SearchHit(object_id=f"{query}-{i}", title=f"{query} result {i}")
        for i in range(count)
    ]
    return SearchResult(hits=hits, total_hits=count, query=query)


class RecordingSearch:
    """Search function that answers immediately and records queries."""

    def __init__(self):
        self.queries: List[str] = []

    async def __call__(self, query: str) -> SearchResult:
        self.queries.append(query)
        return result_for(query)


class GatedSearch:
    """Search function whose responses are released manually per query."""

    def __init__(self):
        self.gates: Dict[str, asyncio.Event] = {}
        self.queries: List[str] = []

    def release(self, query: str) -> None:
        self.gates.setdefault(query, asyncio.Event()).set()

    async def __call__(self, query: str) -> SearchResult:
        self.queries.append(query)
        await self.gates.setdefault(query, asyncio.Event()).wait()
        return result_for(query, count=len(query))


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestDebouncing:
    @pytest.mark.asyncio
    async def test_rapid_typing_issues_one_search(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=20)

        pipeline.set_query("a")
        pipeline.set_query("ab")
        pipeline.set_query("abc")

        assert pipeline.state.query == "abc"
        assert pipeline.pending is True
        assert search_fn.queries == []

        await pipeline.wait_idle()

        assert search_fn.queries == ["abc"]
        assert pipeline.state.results[0].object_id == "abc-0"
        assert pipeline.state.total_hits == 1
        assert pipeline.state.is_loading is False

    @pytest.mark.asyncio
    async def test_pause_between_keystrokes_issues_separate_searches(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=10)

        pipeline.set_query("a")
        await pipeline.wait_idle()
        pipeline.set_query("ab")
        await pipeline.wait_idle()

        assert search_fn.queries == ["a", "ab"]

    @pytest.mark.asyncio
    async def test_flush_fires_immediately(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=10000)

        pipeline.set_query("report")
        pipeline.flush()
        await pipeline.wait_idle()

        assert search_fn.queries == ["report"]
        assert pipeline.pending is False

    @pytest.mark.asyncio
    async def test_query_is_trimmed_before_searching(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("  report ")
        await pipeline.wait_idle()

        assert search_fn.queries == ["report"]
        assert pipeline.state.query == "  report "
        assert len(pipeline.state.results) == 1

    def test_rejects_negative_debounce(self):
        with pytest.raises(ValueError):
            DebouncedSearch(RecordingSearch(), debounce_ms=-1)


class TestEmptyQuery:
    @pytest.mark.asyncio
    async def test_empty_query_does_not_search(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("   ")
        await pipeline.wait_idle()

        assert search_fn.queries == []
        assert pipeline.state == SearchState(query="   ")

    @pytest.mark.asyncio
    async def test_clearing_query_clears_results(self):
        search_fn = RecordingSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("abc")
        await pipeline.wait_idle()
        pipeline.set_query("")
        await pipeline.wait_idle()

        assert pipeline.state.results == []
        assert pipeline.state.total_hits == 0
        assert pipeline.state.is_loading is False

    @pytest.mark.asyncio
    async def test_clearing_query_ignores_in_flight_search(self):
        search_fn = GatedSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("abc")
        pipeline.flush()
        pipeline.set_query("")
        pipeline.flush()
        search_fn.release("abc")
        await pipeline.wait_idle()

        assert pipeline.state.results == []
        assert pipeline.state.is_loading is False


class TestRaceSafety:
    @pytest.mark.asyncio
    async def test_late_response_for_old_query_is_dropped(self):
        search_fn = GatedSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("a")
        pipeline.flush()
        pipeline.set_query("ab")
        pipeline.flush()
        assert pipeline.state.is_loading is True

        search_fn.release("ab")
        await settle()
        assert [hit.object_id for hit in pipeline.state.results] == ["ab-0", "ab-1"]
        assert pipeline.state.is_loading is False

        search_fn.release("a")
        await pipeline.wait_idle()

        assert search_fn.queries == ["a", "ab"]
        assert [hit.object_id for hit in pipeline.state.results] == ["ab-0", "ab-1"]
        assert pipeline.state.total_hits == 2
        assert pipeline.state.query == "ab"

    @pytest.mark.asyncio
    async def test_old_response_arriving_first_does_not_flash(self):
        search_fn = GatedSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)
        seen_results = []
        pipeline.subscribe(lambda state: seen_results.append(list(state.results)))

        pipeline.set_query("a")
        pipeline.flush()
        pipeline.set_query("ab")
        pipeline.flush()

        search_fn.release("a")
        await settle()
        assert pipeline.state.results == []
        assert pipeline.state.is_loading is True

        search_fn.release("ab")
        await pipeline.wait_idle()

        assert all(hit.object_id.startswith("ab") for hits in seen_results for hit in hits)
        assert pipeline.state.total_hits == 2

    @pytest.mark.asyncio
    async def test_result_not_applied_when_query_moved_on(self):
        search_fn = GatedSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=10000)

        pipeline.set_query("ab")
        pipeline.flush()
        pipeline.set_query("abc")

        search_fn.release("ab")
        await settle()

        assert pipeline.state.query == "abc"
        assert pipeline.state.results == []
        assert pipeline.state.is_loading is False
        assert pipeline.pending is True

        pipeline.cancel()

    @pytest.mark.asyncio
    async def test_stale_failure_is_ignored(self):
        class FailingOldSearch(GatedSearch):
            async def __call__(self, query):
                result = await super().__call__(query)
                if query == "a":
                    raise NetworkError("dropped")
                return result

        search_fn = FailingOldSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("a")
        pipeline.flush()
        pipeline.set_query("ab")
        pipeline.flush()
        search_fn.release("ab")
        await settle()
        search_fn.release("a")
        await pipeline.wait_idle()

        assert pipeline.state.error is None
        assert pipeline.state.total_hits == 2

    @pytest.mark.asyncio
    async def test_cancel_drops_in_flight_response(self):
        search_fn = GatedSearch()
        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("abc")
        pipeline.flush()
        pipeline.cancel()
        assert pipeline.state.is_loading is False

        search_fn.release("abc")
        await pipeline.wait_idle()

        assert pipeline.state.results == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_failure_sets_error_and_clears_results(self):
        calls = []

        async def search_fn(query):
            calls.append(query)
            if query == "boom":
                raise ApiError("failed", 500, response={})
            return result_for(query)

        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("ok")
        await pipeline.wait_idle()
        pipeline.set_query("boom")
        await pipeline.wait_idle()

        assert isinstance(pipeline.state.error, ApiError)
        assert pipeline.state.error_message == SEARCH_FAILED
        assert pipeline.state.results == []
        assert pipeline.state.total_hits == 0
        assert pipeline.state.is_loading is False

    @pytest.mark.asyncio
    async def test_next_search_clears_error(self):
        async def search_fn(query):
            if query == "boom":
                raise NetworkError("down")
            return result_for(query)

        pipeline = DebouncedSearch(search_fn, debounce_ms=0)

        pipeline.set_query("boom")
        await pipeline.wait_idle()
        assert pipeline.state.error is not None

        pipeline.set_query("fine")
        await pipeline.wait_idle()

        assert pipeline.state.error is None
        assert pipeline.state.error_message is None
        assert len(pipeline.state.results) == 1


class TestForClient:
    @pytest.mark.asyncio
    async def test_wraps_search_client(self):
        class FakeClient:
            async def search(self, query):
                return result_for(query, count=3)

        pipeline = DebouncedSearch.for_client(FakeClient(), debounce_ms=0)

        pipeline.set_query("abc")
        await pipeline.wait_idle()

        assert pipeline.state.total_hits == 3
