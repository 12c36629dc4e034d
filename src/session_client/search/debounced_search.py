"""Debounced, race-safe search pipeline.

Every keystroke updates the visible query at once, while the actual search
is delayed until input has been quiet for the debounce period (trailing
edge). Each issued search gets a sequence number; a response is applied only
if it belongs to the most recently issued search and its query still equals
the current query. Older responses are dropped whatever order they arrive in.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Set, TYPE_CHECKING

from ..api_clients.error_classifier import classify
from ..models import SearchHit, SearchResult
from ..state import StateContainer

if TYPE_CHECKING:
    from ..api_clients.search_client import SearchAPIClient

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300
SEARCH_FAILED = "Search failed"

SearchFunction = Callable[[str], Awaitable[SearchResult]]


@dataclass(frozen=True)
class SearchState:
    """Snapshot of the search pipeline as seen by the UI."""

    query: str = ""
    results: List[SearchHit] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[Exception] = None
    total_hits: int = 0

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return classify(self.error, default_message=SEARCH_FAILED)


class DebouncedSearch(StateContainer[SearchState]):
    """Coalesces query changes and applies only the freshest search result.

    Must be driven from a running asyncio event loop.
    """

    def __init__(self, search_fn: SearchFunction, debounce_ms: int = DEFAULT_DEBOUNCE_MS):
        if debounce_ms < 0:
            raise ValueError("debounce_ms cannot be negative")
        super().__init__(SearchState())
        self._search_fn = search_fn
        self.debounce_ms = debounce_ms
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending_query: Optional[str] = None
        self._sequence = 0
        self._in_flight: Set["asyncio.Task[None]"] = set()

    @classmethod
    def for_client(
        cls, search_client: "SearchAPIClient", debounce_ms: int = DEFAULT_DEBOUNCE_MS
    ) -> "DebouncedSearch":
        return cls(search_client.search, debounce_ms=debounce_ms)

    @property
    def pending(self) -> bool:
        """True while a debounced search is scheduled but has not fired."""
        return self._timer is not None

    def set_query(self, query: str) -> None:
        """Update the query now and (re)schedule the search."""
        loop = asyncio.get_running_loop()
        self._set_state(query=query)

        if self._timer is not None:
            self._timer.cancel()
        self._pending_query = query
        self._timer = loop.call_later(self.debounce_ms / 1000, self._fire)

    def flush(self) -> None:
        """Fire a scheduled search immediately."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the scheduled search and ignore every in-flight response."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending_query = None
        self._sequence += 1
        if self._state.is_loading:
            self._set_state(is_loading=False)

    async def wait_idle(self) -> None:
        """Wait until no search is scheduled or in flight."""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self._in_flight:
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight), return_exceptions=True)
            elif self._timer is not None:
                await asyncio.sleep(max(0.0, self._timer.when() - loop.time()))
                # let the timer callback run
                await asyncio.sleep(0)

    def _fire(self) -> None:
        self._timer = None
        query = self._pending_query
        self._pending_query = None
        if query is None:
            return

        self._sequence += 1
        sequence = self._sequence

        if not query.strip():
            self._set_state(results=[], total_hits=0, is_loading=False, error=None)
            return

        self._set_state(is_loading=True, error=None)
        task = asyncio.get_running_loop().create_task(
            self._run(query.strip(), sequence)
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def _is_stale(self, sequence: int) -> bool:
        return sequence != self._sequence

    async def _run(self, query: str, sequence: int) -> None:
        try:
            result = await self._search_fn(query)
        except Exception as e:
            if self._is_stale(sequence):
                logger.debug(f"Ignoring failure of superseded search {query!r}: {e}")
                return
            logger.warning(f"Search for {query!r} failed: {e}")
            self._set_state(error=e, results=[], total_hits=0, is_loading=False)
            return

        if self._is_stale(sequence):
            logger.debug(f"Dropping stale results for {query!r}")
            return

        if result.query.strip() != self._state.query.strip():
            logger.debug(
                f"Query changed to {self._state.query!r}, "
                f"not applying results for {query!r}"
            )
            self._set_state(is_loading=False)
            return

        self._set_state(
            results=list(result.hits),
            total_hits=result.total_hits,
            is_loading=False,
        )
