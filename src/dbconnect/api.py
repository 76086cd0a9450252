"""
High-level programmatic API for db-connect.

These helpers open a connection, run one call, and close it again.
For repeated calls, or to share a cache between them, use DbConnect
directly.

Example:
    import asyncio
    from dbconnect import query

    async def main():
        resp = await query("sql.mysite.com", "SELECT COUNT(*) AS n FROM users")
        if resp.ok:
            print(resp.json()[0]["n"])

    asyncio.run(main())
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from dbconnect.cache.base import CacheStore
from dbconnect.connection import DbConnect
from dbconnect.core.models import Command, Response


async def ping(
    host: str,
    client_id: str | None = None,
    client_secret: str | None = None,
    *,
    cache: CacheStore | None = None,
) -> Response:
    """Test the connection to a tunnel.

    Example:
        >>> import asyncio
        >>> from dbconnect import ping
        >>> asyncio.run(ping("sql.mysite.com")).ok
        True
    """
    async with DbConnect(host, client_id, client_secret, cache=cache) as db:
        return await db.ping()


async def submit(
    host: str,
    command: Command | Mapping[str, Any],
    client_id: str | None = None,
    client_secret: str | None = None,
    *,
    cache: CacheStore | None = None,
) -> Response:
    """Submit a single command to a tunnel."""
    async with DbConnect(host, client_id, client_secret, cache=cache) as db:
        return await db.submit(command)


async def query(
    host: str,
    statement: str,
    arguments: Any = None,
    *,
    client_id: str | None = None,
    client_secret: str | None = None,
    cache: CacheStore | None = None,
    **options: Any,
) -> Response:
    """Run a single query against a tunnel.

    Args:
        host: Hostname or URL of the tunnel.
        statement: SQL statement.
        arguments: Positional (list) or named (dict) arguments.
        client_id: Optional Access client id.
        client_secret: Optional Access client secret.
        cache: Optional cache store.
        **options: Other Command fields (isolation, timeout, cache_ttl, stale_ttl).

    Example:
        >>> import asyncio
        >>> from dbconnect import query
        >>> resp = asyncio.run(query("sql.mysite.com", "SELECT 1 AS one"))
        >>> resp.json()
        [{'one': 1}]
    """
    async with DbConnect(host, client_id, client_secret, cache=cache) as db:
        return await db.query(statement, arguments, **options)


def ping_sync(
    host: str,
    client_id: str | None = None,
    client_secret: str | None = None,
) -> Response:
    """Synchronous wrapper for ping().

    For use in non-async contexts. Runs a new event loop.
    """
    return asyncio.run(ping(host, client_id, client_secret))


def query_sync(
    host: str,
    statement: str,
    arguments: Any = None,
    **kwargs: Any,
) -> Response:
    """Synchronous wrapper for query().

    Example:
        >>> from dbconnect import query_sync
        >>> resp = query_sync("sql.mysite.com", "SELECT 1 AS one")
        >>> resp.ok
        True
    """
    return asyncio.run(query(host, statement, arguments, **kwargs))
