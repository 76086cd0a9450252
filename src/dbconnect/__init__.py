"""
db-connect

Access your SQL database through an Argo Tunnel running in db-connect
mode, over plain HTTP. Responses can be cached per command, with a
freshness window and a stale-serving window.

Quick Start:
    >>> import asyncio
    >>> from dbconnect import DbConnect
    >>> async def main():
    ...     async with DbConnect("sql.mysite.com", "id.access", "secret") as db:
    ...         resp = await db.query("SELECT * FROM users WHERE age > ?", [21], cache_ttl=60)
    ...         return resp.json() if resp.ok else resp.text()
    >>> rows = asyncio.run(main())

    # Or use the one-shot synchronous API:
    >>> from dbconnect import query_sync
    >>> resp = query_sync("sql.mysite.com", "SELECT COUNT(*) AS n FROM users")
"""

__version__ = "0.1.0"

# High-level API (recommended for most users)
from dbconnect.api import (
    ping,
    ping_sync,
    query,
    query_sync,
    submit,
)

# Connection facade
from dbconnect.connection import DbConnect

# Cache stores
from dbconnect.cache import CacheStore, MemoryCache, SqliteCache

# Exceptions
from dbconnect.core.exceptions import (
    CacheError,
    ConfigurationError,
    DbConnectError,
    NetworkError,
    ValidationError,
)

# Data models
from dbconnect.core.models import (
    Command,
    ConnectionConfig,
    Isolation,
    Mode,
    Response,
)

__all__ = [
    # Version
    "__version__",
    # High-level API
    "ping",
    "ping_sync",
    "query",
    "query_sync",
    "submit",
    # Connection
    "DbConnect",
    # Models
    "Command",
    "ConnectionConfig",
    "Isolation",
    "Mode",
    "Response",
    # Cache
    "CacheStore",
    "MemoryCache",
    "SqliteCache",
    # Exceptions
    "DbConnectError",
    "ConfigurationError",
    "ValidationError",
    "CacheError",
    "NetworkError",
]
