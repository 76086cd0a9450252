"""
Tests for Cache-Control handling and the cache stores.
"""

import sqlite3

import pytest

from dbconnect.cache.control import (
    NO_STORE,
    build_cache_control,
    parse_cache_control,
)
from dbconnect.cache.memory import MemoryCache
from dbconnect.cache.sqlite import SqliteCache
from dbconnect.core.models import RequestDescriptor, Response


def cached_response(directive: str, body: bytes = b"[]") -> Response:
    return Response(status=200, body=body, headers={"Cache-Control": directive})


KEY = RequestDescriptor(url="https://sql.example.com/ping")


class TestBuildCacheControl:
    """Tests for directive synthesis."""

    @pytest.mark.parametrize(
        "cache_ttl,stale_ttl,expected",
        [
            (-1, -1, "private, no-store, no-cache"),
            (60, -1, "public, max-age=60"),
            (0, 3, "public, max-age=0, stale-while-revalidate=3"),
            (-1, 30, "public, stale-while-revalidate=30"),
            (60, 60, "public, max-age=60, stale-while-revalidate=60"),
        ],
    )
    def test_directive_table(self, cache_ttl, stale_ttl, expected):
        """Test the directive for each TTL combination."""
        assert build_cache_control(cache_ttl, stale_ttl) == expected

    def test_no_store_constant(self):
        """Test the no-store directive."""
        assert build_cache_control(-5, -1) == NO_STORE


class TestParseCacheControl:
    """Tests for reading directives back."""

    def test_fresh_and_stale(self):
        """Test both windows are parsed."""
        directive = parse_cache_control("public, max-age=0, stale-while-revalidate=3")
        assert directive.storable
        assert directive.max_age == 0
        assert directive.stale_while_revalidate == 3
        assert directive.lifetime == 3

    def test_no_store(self):
        """Test private/no-store responses are not storable."""
        directive = parse_cache_control(NO_STORE)
        assert not directive.storable
        assert not directive.is_servable(0)

    def test_missing_header(self):
        """Test a missing header has no lifetime."""
        directive = parse_cache_control(None)
        assert directive.lifetime == 0
        assert not directive.is_servable(0)

    def test_malformed_values_ignored(self):
        """Test bad numbers are dropped."""
        directive = parse_cache_control("public, max-age=abc, stale-while-revalidate=5")
        assert directive.max_age is None
        assert directive.lifetime == 5

    def test_servable_window(self):
        """Test an entry is servable until fresh plus stale time elapses."""
        directive = parse_cache_control("public, max-age=10, stale-while-revalidate=5")
        assert directive.is_servable(0)
        assert directive.is_servable(12)
        assert not directive.is_servable(15)


class TestMemoryCache:
    """Tests for the in-memory store."""

    @pytest.mark.asyncio
    async def test_miss(self, memory_cache: MemoryCache):
        """Test an empty cache misses."""
        assert await memory_cache.match(KEY) is None

    @pytest.mark.asyncio
    async def test_hit_within_window(self, memory_cache: MemoryCache, clock):
        """Test a stored response is served during its window."""
        await memory_cache.put(KEY, cached_response("public, max-age=0, stale-while-revalidate=3"))

        clock.advance(2)
        hit = await memory_cache.match(KEY)
        assert hit is not None
        assert hit.json() == []

    @pytest.mark.asyncio
    async def test_expires_after_window(self, memory_cache: MemoryCache, clock):
        """Test a response is evicted once its window has elapsed."""
        await memory_cache.put(KEY, cached_response("public, max-age=0, stale-while-revalidate=3"))

        clock.advance(3)
        assert await memory_cache.match(KEY) is None
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_no_store_is_not_kept(self, memory_cache: MemoryCache):
        """Test no-store responses are skipped."""
        await memory_cache.put(KEY, cached_response(NO_STORE))
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_ignore_method(self, memory_cache: MemoryCache):
        """Test method-insensitive matching."""
        await memory_cache.put(KEY, cached_response("public, max-age=60"))
        post_key = RequestDescriptor(url=KEY.url, method="POST")

        assert await memory_cache.match(post_key, ignore_method=True) is not None
        assert await memory_cache.match(post_key, ignore_method=False) is None

    @pytest.mark.asyncio
    async def test_returns_copies(self, memory_cache: MemoryCache):
        """Test callers cannot mutate the stored entry."""
        await memory_cache.put(KEY, cached_response("public, max-age=60"))

        first = await memory_cache.match(KEY)
        first.headers["X-Mutated"] = "yes"
        second = await memory_cache.match(KEY)
        assert "X-Mutated" not in second.headers

    @pytest.mark.asyncio
    async def test_last_write_wins(self, memory_cache: MemoryCache):
        """Test a second put replaces the first."""
        await memory_cache.put(KEY, cached_response("public, max-age=60", b"[1]"))
        await memory_cache.put(KEY, cached_response("public, max-age=60", b"[2]"))
        assert (await memory_cache.match(KEY)).json() == [2]

    @pytest.mark.asyncio
    async def test_put_drops_expired_entries(self, memory_cache: MemoryCache, clock):
        """Test entries that are never read again do not pile up."""
        for i in range(100):
            key = RequestDescriptor(url=f"https://sql.example.com/submit/_/{i:064x}")
            await memory_cache.put(key, cached_response("public, max-age=1"))
        assert len(memory_cache) == 100

        clock.advance(3600)
        await memory_cache.put(KEY, cached_response("public, max-age=1"))

        assert len(memory_cache) == 1
        assert await memory_cache.match(KEY) is not None

    @pytest.mark.asyncio
    async def test_put_keeps_servable_entries(self, memory_cache: MemoryCache, clock):
        """Test entries still inside their window survive a sweep."""
        stale = RequestDescriptor(url="https://sql.example.com/submit/_/stale")
        await memory_cache.put(stale, cached_response("public, max-age=0, stale-while-revalidate=3"))

        clock.advance(2)
        await memory_cache.put(KEY, cached_response("public, max-age=60"))

        assert len(memory_cache) == 2
        assert await memory_cache.match(stale) is not None

    @pytest.mark.asyncio
    async def test_cleanup(self, memory_cache: MemoryCache, clock):
        """Test cleanup reports the number of expired entries removed."""
        await memory_cache.put(KEY, cached_response("public, max-age=5"))
        assert memory_cache.cleanup() == 0

        clock.advance(5)
        assert memory_cache.cleanup() == 1
        assert len(memory_cache) == 0

    @pytest.mark.asyncio
    async def test_max_entries_evicts_oldest(self, clock):
        """Test the size bound evicts the oldest write first."""
        cache = MemoryCache(clock=clock, max_entries=2)
        keys = [RequestDescriptor(url=f"https://sql.example.com/q{i}") for i in range(3)]

        await cache.put(keys[0], cached_response("public, max-age=60"))
        await cache.put(keys[1], cached_response("public, max-age=60"))
        await cache.put(keys[0], cached_response("public, max-age=60"))
        await cache.put(keys[2], cached_response("public, max-age=60"))

        assert len(cache) == 2
        assert await cache.match(keys[1]) is None
        assert await cache.match(keys[0]) is not None
        assert await cache.match(keys[2]) is not None

    def test_invalid_max_entries(self):
        """Test a non-positive bound is rejected."""
        with pytest.raises(ValueError):
            MemoryCache(max_entries=0)

    def test_clear(self, memory_cache: MemoryCache):
        """Test clearing reports the number of entries."""
        assert memory_cache.clear() == 0


class TestSqliteCache:
    """Tests for the SQLite store."""

    @pytest.fixture
    def sqlite_cache(self, tmp_path) -> SqliteCache:
        return SqliteCache(tmp_path / "cache.db")

    @pytest.mark.asyncio
    async def test_round_trip(self, sqlite_cache: SqliteCache):
        """Test a stored response comes back intact."""
        original = cached_response("public, max-age=60", b'[{"ip": 1111}]')
        original.url = KEY.url
        await sqlite_cache.put(KEY, original)

        hit = await sqlite_cache.match(KEY)
        assert hit is not None
        assert hit.status == 200
        assert hit.json() == [{"ip": 1111}]
        assert hit.headers["cache-control"] == "public, max-age=60"
        assert hit.url == KEY.url

    @pytest.mark.asyncio
    async def test_no_store_is_not_written(self, sqlite_cache: SqliteCache):
        """Test no-store and zero-lifetime responses are skipped."""
        await sqlite_cache.put(KEY, cached_response(NO_STORE))
        await sqlite_cache.put(KEY, cached_response("public, max-age=0"))
        assert sqlite_cache.stats()["total_entries"] == 0

    @pytest.mark.asyncio
    async def test_method_sensitive_match(self, sqlite_cache: SqliteCache):
        """Test method matching when not ignored."""
        await sqlite_cache.put(KEY, cached_response("public, max-age=60"))
        post_key = RequestDescriptor(url=KEY.url, method="POST")
        assert await sqlite_cache.match(post_key, ignore_method=False) is None
        assert await sqlite_cache.match(post_key) is not None

    def _expire_all(self, cache: SqliteCache) -> None:
        conn = sqlite3.connect(cache.db_path)
        conn.execute("UPDATE responses SET expires_at = datetime('now', '-1 seconds')")
        conn.commit()
        conn.close()

    @pytest.mark.asyncio
    async def test_expired_entries(self, sqlite_cache: SqliteCache):
        """Test expired rows are not served and are removed by cleanup."""
        await sqlite_cache.put(KEY, cached_response("public, max-age=60"))
        self._expire_all(sqlite_cache)

        assert await sqlite_cache.match(KEY) is None
        assert sqlite_cache.stats()["expired_entries"] == 1
        assert sqlite_cache.cleanup() == 1
        assert sqlite_cache.stats()["total_entries"] == 0

    @pytest.mark.asyncio
    async def test_stats_by_endpoint(self, sqlite_cache: SqliteCache):
        """Test submitted commands are grouped under their endpoint."""
        for digest in ("aa", "bb"):
            key = RequestDescriptor(url=f"https://sql.example.com/submit/_/{digest}")
            await sqlite_cache.put(key, cached_response("public, max-age=60"))
        await sqlite_cache.put(KEY, cached_response("public, max-age=60"))

        stats = sqlite_cache.stats()
        assert stats["valid_entries"] == 3
        assert stats["entries_by_endpoint"] == {
            "https://sql.example.com/submit": 2,
            "https://sql.example.com/ping": 1,
        }

    @pytest.mark.asyncio
    async def test_invalidate_and_clear(self, sqlite_cache: SqliteCache):
        """Test pattern invalidation and clearing."""
        await sqlite_cache.put(KEY, cached_response("public, max-age=60"))
        other = RequestDescriptor(url="https://other.example.com/ping")
        await sqlite_cache.put(other, cached_response("public, max-age=60"))

        assert sqlite_cache.invalidate("https://other.example.com/%") == 1
        assert sqlite_cache.clear() == 1
