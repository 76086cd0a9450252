"""
Caching HTTP client for the tunnel endpoint.

Wraps an origin transport with a cache store. Each call derives a cache
key, serves a stored response when the store still has one, and
otherwise calls the origin and stores the result tagged with a
Cache-Control directive built from the call's TTLs.

Concurrent misses for the same key each reach the origin; the last
store wins.
"""

from collections.abc import Mapping
from typing import Any

from multidict import CIMultiDict

from dbconnect.cache.base import CacheStore
from dbconnect.cache.control import build_cache_control
from dbconnect.cache.memory import MemoryCache
from dbconnect.core.exceptions import CacheError, ConfigurationError, NetworkError
from dbconnect.core.logging import get_logger
from dbconnect.core.models import RequestDescriptor, Response
from dbconnect.core.validation import CACHE_DISABLED
from dbconnect.http.auth import ACCESS_REJECTED_MESSAGE, is_access_redirect
from dbconnect.http.keys import cache_key, merge_headers, resolve_url
from dbconnect.http.transport import AiohttpTransport, Transport

# Status reported when the origin could not be reached at all
ORIGIN_UNREACHABLE_STATUS = 502
# Status reported when Access rejected the client credentials
ACCESS_REJECTED_STATUS = 401


class HttpClient:
    """Fetches paths beneath a base URL from the cache or the origin."""

    def __init__(
        self,
        base_url: str,
        headers: Mapping[str, str] | None = None,
        cache: CacheStore | None = None,
        transport: Transport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL that request paths are joined onto.
            headers: Headers sent with every request; these win over
                per-call headers.
            cache: Cache store for responses. Defaults to a MemoryCache.
            transport: Origin transport. Defaults to an AiohttpTransport.
        """
        if not base_url:
            raise ConfigurationError("url is a required argument")

        self.base_url = base_url
        self.headers = CIMultiDict(headers or {})
        self.cache = cache if cache is not None else MemoryCache()
        self.transport = transport if transport is not None else AiohttpTransport()
        self.logger = get_logger("dbconnect.http")

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def build_request(
        self,
        path: str,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> RequestDescriptor:
        """Resolve a path and merge headers into a request."""
        return RequestDescriptor(
            url=resolve_url(self.base_url, path),
            method=method.upper(),
            headers=merge_headers(self.headers, headers),
            body=body,
        )

    async def fetch(
        self,
        path: str,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        cache_ttl: int = CACHE_DISABLED,
        stale_ttl: int = CACHE_DISABLED,
    ) -> Response:
        """Fetch a path from the cache or the origin.

        Args:
            path: Path to fetch, joined onto the base URL.
            method: HTTP method.
            headers: Per-call headers.
            body: Request body.
            cache_ttl: Seconds to serve the response fresh; negative to omit.
            stale_ttl: Seconds to serve the response stale; negative to omit.
                When both TTLs are negative the cache is bypassed entirely.

        Returns:
            The cached or origin response. Failures are reported as a
            non-ok Response, never raised.
        """
        request = self.build_request(path, method, headers, body)

        if cache_ttl < 0 and stale_ttl < 0:
            self.logger.debug("cache bypass", url=request.url, method=request.method)
            return await self.fetch_origin(request)

        key = cache_key(request)

        response = await self._match(key)
        if response is not None:
            self.logger.debug("cache hit", url=request.url, key=key.url)
            return response

        self.logger.debug("cache miss", url=request.url, key=key.url)
        response = await self.fetch_origin(request)
        response.headers["Cache-Control"] = build_cache_control(cache_ttl, stale_ttl)

        if response.ok:
            await self._put(key, response.copy())

        return response

    async def fetch_origin(self, request: RequestDescriptor) -> Response:
        """Send a request directly to the origin.

        Unreachable origins and Access login redirects are turned into
        non-ok responses.
        """
        try:
            response = await self.transport.send(request)
        except NetworkError as e:
            self.logger.warning("origin unreachable", url=request.url, error=str(e))
            return Response(
                status=ORIGIN_UNREACHABLE_STATUS,
                body=str(e).encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
                url=request.url,
            )

        # Access sometimes redirects to a 200 login page when client credentials are invalid.
        if is_access_redirect(response):
            self.logger.warning(
                "access login redirect",
                url=request.url,
                final_url=response.url,
                status=response.status,
            )
            return Response(
                status=ACCESS_REJECTED_STATUS,
                body=ACCESS_REJECTED_MESSAGE.encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
                url=response.url,
                redirected=True,
            )

        return response

    async def _match(self, key: RequestDescriptor) -> Response | None:
        try:
            return await self.cache.match(key, ignore_method=True)
        except CacheError as e:
            self.logger.warning("cache lookup failed", key=key.url, error=str(e))
            return None

    async def _put(self, key: RequestDescriptor, response: Response) -> None:
        try:
            await self.cache.put(key, response)
        except CacheError as e:
            self.logger.warning("cache store failed", key=key.url, error=str(e))
