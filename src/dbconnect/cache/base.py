"""
Abstract base class for cache stores.

The fetch layer needs only two capabilities from a store: look a
response up by key, and store a response under a key. Expiry and
eviction belong to the store.
"""

from abc import ABC, abstractmethod

from dbconnect.core.models import RequestDescriptor, Response


class CacheStore(ABC):
    """A key/value store for responses.

    Stores interpret the Cache-Control header written on each response
    to decide how long it may be served.
    """

    @abstractmethod
    async def match(
        self,
        key: RequestDescriptor,
        ignore_method: bool = True,
    ) -> Response | None:
        """Look up a stored response.

        Args:
            key: The cache key request.
            ignore_method: Match regardless of the key's HTTP method.

        Returns:
            A copy of the stored response, or None if absent or expired.
        """

    @abstractmethod
    async def put(self, key: RequestDescriptor, response: Response) -> None:
        """Store a response under a key, replacing any previous entry."""
