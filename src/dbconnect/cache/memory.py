"""
In-memory cache store.

Useful for long-running processes and for tests, where the clock can
be replaced to move entries through their freshness and stale windows.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from dbconnect.cache.base import CacheStore
from dbconnect.cache.control import CacheDirective, parse_cache_control
from dbconnect.core.models import RequestDescriptor, Response


@dataclass
class _Entry:
    method: str
    response: Response
    directive: CacheDirective
    stored_at: float


class MemoryCache(CacheStore):
    """Process-local cache honoring max-age and stale-while-revalidate.

    Expired entries are dropped on every write, so keys that are never
    read again do not accumulate. ``max_entries`` additionally bounds the
    store, evicting the oldest writes first.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ):
        """Initialize the cache.

        Args:
            clock: Returns the current time in seconds.
            max_entries: Maximum number of stored responses, or None for
                no limit.
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, _Entry] = {}

    async def match(
        self,
        key: RequestDescriptor,
        ignore_method: bool = True,
    ) -> Response | None:
        entry = self._entries.get(key.url)
        if entry is None or not (ignore_method or entry.method == key.method):
            return None

        age = self._clock() - entry.stored_at
        if not entry.directive.is_servable(age):
            del self._entries[key.url]
            return None

        return entry.response.copy()

    async def put(self, key: RequestDescriptor, response: Response) -> None:
        directive = parse_cache_control(response.headers.get("Cache-Control"))
        if not directive.storable:
            return

        now = self._clock()
        self.cleanup(now)

        # Re-inserting moves the key to the end of the eviction order
        self._entries.pop(key.url, None)
        self._entries[key.url] = _Entry(
            method=key.method,
            response=response.copy(),
            directive=directive,
            stored_at=now,
        )

        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                del self._entries[next(iter(self._entries))]

    def cleanup(self, now: float | None = None) -> int:
        """Remove expired entries and return how many were removed."""
        if now is None:
            now = self._clock()
        expired = [
            url
            for url, entry in self._entries.items()
            if not entry.directive.is_servable(now - entry.stored_at)
        ]
        for url in expired:
            del self._entries[url]
        return len(expired)

    def clear(self) -> int:
        """Remove all entries and return how many there were."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)
