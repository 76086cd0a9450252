"""
Origin transports.

A transport sends a RequestDescriptor to the tunnel endpoint and
returns a buffered Response. The default transport uses aiohttp.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from multidict import CIMultiDict

from dbconnect.core.exceptions import NetworkError
from dbconnect.core.models import RequestDescriptor, Response


class Transport(ABC):
    """Abstract base class for origin transports."""

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> Response:
        """Send a request to the origin.

        Raises:
            NetworkError: If the origin cannot be reached.
        """

    async def close(self) -> None:
        """Release any resources held by the transport."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class AiohttpTransport(Transport):
    """Transport backed by an aiohttp client session.

    Redirects are followed; the returned Response records whether one
    happened and the final URL, so callers can inspect where the
    request ended up.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        timeout: float | None = None,
    ):
        """Initialize the transport.

        Args:
            session: Optional aiohttp session. If not provided, one will
                     be created when needed.
            timeout: Total request timeout in seconds, or None for none.
                     Command timeouts are advisory and not applied here.
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, request: RequestDescriptor) -> Response:
        try:
            async with self.session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
                allow_redirects=True,
            ) as resp:
                body = await resp.read()
                return Response(
                    status=resp.status,
                    body=body,
                    headers=CIMultiDict(resp.headers),
                    url=str(resp.url),
                    redirected=bool(resp.history),
                )

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(request.url, details=str(e) or type(e).__name__)
