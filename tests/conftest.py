"""
Pytest fixtures and configuration for db-connect tests.

Provides a mock origin transport, a controllable clock for cache
expiry, and sample commands and responses.
"""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from dbconnect.cache.memory import MemoryCache
from dbconnect.connection import DbConnect
from dbconnect.core.models import Command, ConnectionConfig, RequestDescriptor, Response
from dbconnect.http.transport import Transport


class FakeClock:
    """Manually advanced clock for cache stores."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def json_response(data: Any, status: int = 200, url: str = "") -> Response:
    """Build a JSON response as the tunnel would return it."""
    return Response(
        status=status,
        body=json.dumps(data).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        url=url,
    )


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """Rows returned for a query."""
    return [{"ip": 1111}, {"ip": 1001}]


@pytest.fixture
def sample_command() -> Command:
    """A cached query command."""
    return Command(
        statement="SELECT * FROM users WHERE name = ? AND age > ?",
        arguments=["matthew", 21],
        cache_ttl=60,
    )


@pytest.fixture
def sample_config() -> ConnectionConfig:
    """A connection with Access credentials."""
    return ConnectionConfig(
        host="sql.example.com",
        client_id="client-id.access",
        client_secret="client-secret",
    )


# =============================================================================
# Mock Transport and Cache Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """A clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCache:
    """An empty in-memory cache driven by the fake clock."""
    return MemoryCache(clock=clock)


@pytest.fixture
def mock_transport(sample_rows: list[dict[str, Any]]) -> MagicMock:
    """Transport that answers every request with the sample rows."""

    def respond(request: RequestDescriptor) -> Response:
        return json_response(sample_rows, url=request.url)

    transport = MagicMock(spec=Transport)
    transport.send = AsyncMock(side_effect=respond)
    transport.close = AsyncMock()
    return transport


@pytest.fixture
def db(mock_transport: MagicMock, memory_cache: MemoryCache) -> DbConnect:
    """A connection wired to the mock transport and in-memory cache."""
    return DbConnect(
        "sql.example.com",
        cache=memory_cache,
        transport=mock_transport,
    )
