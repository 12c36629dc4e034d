"""Keyed response cache with staleness tracking and revalidation.

Covers the interface a UI-layer data cache needs from the client: data for
a key, whether that data is stale, and a way to revalidate or purge it.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from ..session.manager import SessionManager

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Any]]
KeyMatcher = Union[str, Callable[[str], bool]]


@dataclass
class CacheEntry:
    """Last known data (or error) for a key."""

    data: Any = None
    error: Optional[Exception] = None
    fetched_at: Optional[float] = None


class ResourceCache:
    """Caches fetcher results per key; entries go stale after a fixed age."""

    def __init__(
        self,
        fetcher: Fetcher,
        stale_after_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.fetched_at is None or entry.error is not None:
            return True
        return self._clock() - entry.fetched_at >= self.stale_after_seconds

    async def get(self, key: Optional[str]) -> Any:
        """Return fresh data for `key`, fetching when missing or stale.

        A `None` key skips fetching and returns None.

        Raises:
            Whatever the fetcher raises; the error is also kept on the entry
        """
        if key is None:
            return None
        if not self.is_stale(key):
            return self._entries[key].data
        return await self.revalidate(key)

    async def revalidate(self, key: str) -> Any:
        """Fetch `key` again regardless of staleness."""
        entry = self._entries.setdefault(key, CacheEntry())
        try:
            data = await self._fetcher(key)
        except Exception as e:
            logger.debug(f"Revalidation of {key!r} failed: {e}")
            entry.error = e
            raise
        entry.data = data
        entry.error = None
        entry.fetched_at = self._clock()
        return data

    def mutate(self, matcher: KeyMatcher, data: Any = None, revalidate: bool = False) -> int:
        """Overwrite (or drop, when `data` is None) matching entries.

        Dropped entries are fetched again on the next get(). With
        `revalidate=True`, written data is marked stale so the next get()
        refetches it.

        Returns:
            Number of entries affected
        """
        if callable(matcher):
            keys = [key for key in self._entries if matcher(key)]
        else:
            keys = [matcher] if matcher in self._entries or data is not None else []

        for key in keys:
            if data is None:
                self._entries.pop(key, None)
            else:
                self._entries[key] = CacheEntry(
                    data=data,
                    fetched_at=None if revalidate else self._clock(),
                )
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    @staticmethod
    def authenticated_key(session: "SessionManager", key: str) -> Optional[str]:
        """`key` when the session holds a token, otherwise None (skip fetching)."""
        return key if session.get_token() is not None else None
