"""
DbConnect, access your SQL database over an Argo Tunnel.

Example:
    import asyncio
    from dbconnect import DbConnect

    async def main():
        async with DbConnect("sql.mysite.com", client_id, client_secret) as db:
            await db.exec("CREATE TABLE firewall (ip INT)")
            await db.query("INSERT INTO firewall VALUES (?), (?)", [1111, 1001])

            resp = await db.query("SELECT * FROM firewall", cache_ttl=60)
            if resp.ok:
                rows = resp.json()
                # [{"ip": 1111}, {"ip": 1001}]

    asyncio.run(main())
"""

from collections.abc import Mapping
from typing import Any

from dbconnect.cache.base import CacheStore
from dbconnect.core.exceptions import ValidationError
from dbconnect.core.models import Command, ConnectionConfig, Mode, Response
from dbconnect.http.auth import credential_headers
from dbconnect.http.client import HttpClient
from dbconnect.http.transport import Transport


class DbConnect:
    """Client for a tunnel running in db-connect mode."""

    PING_PATH = "ping"
    SUBMIT_PATH = "submit"

    # Pings are served stale for up to 3 seconds to bound health-check traffic
    PING_CACHE_TTL = 0
    PING_STALE_TTL = 3

    def __init__(
        self,
        host: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        config: ConnectionConfig | None = None,
        cache: CacheStore | None = None,
        transport: Transport | None = None,
    ):
        """Create a connection with a host and credentials.

        Args:
            host: Hostname or URL of the tunnel. Ignored if config is given.
            client_id: Client id of the Access service token for the host.
            client_secret: Client secret of the Access service token.
            config: A prepared ConnectionConfig.
            cache: Cache store for responses. Defaults to a MemoryCache.
            transport: Origin transport. Defaults to an AiohttpTransport.

        Raises:
            ConfigurationError: If the host is missing or only one
                credential is given.
        """
        if config is None:
            config = ConnectionConfig(host, client_id, client_secret)
        self.config = config

        self.http = HttpClient(
            config.base_url,
            headers=self._build_headers(),
            cache=cache,
            transport=transport,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "DbConnect":
        """Create a connection configured from DB_CONNECT_* variables."""
        return cls(config=ConnectionConfig.from_env(), **kwargs)

    async def close(self) -> None:
        """Close the connection's transport."""
        await self.http.close()

    async def __aenter__(self) -> "DbConnect":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def ping(self) -> Response:
        """Test the connection to the database.

        To reduce latency, pings are served stale for up to 3 seconds.

        Returns:
            Response whose ``ok`` flag reports reachability.
        """
        return await self.http.fetch(
            self.PING_PATH,
            method="GET",
            cache_ttl=self.PING_CACHE_TTL,
            stale_ttl=self.PING_STALE_TTL,
        )

    async def submit(self, command: Command | Mapping[str, Any]) -> Response:
        """Send a Command to the database.

        Args:
            command: A Command, or a parameter mapping to build one from.

        Returns:
            Response with a JSON array of rows on success, or error text.

        Raises:
            ValidationError: If a mapping does not describe a valid command.
        """
        if not isinstance(command, Command):
            command = Command.from_dict(command)

        return await self.http.fetch(
            self.SUBMIT_PATH,
            method="POST",
            headers={"Content-type": "application/json"},
            body=command.to_json().encode("utf-8"),
            cache_ttl=command.cache_ttl,
            stale_ttl=command.stale_ttl,
        )

    async def query(self, statement: str, arguments: Any = None, **options: Any) -> Response:
        """Submit a query command that returns a set of rows.

        Args:
            statement: SQL statement.
            arguments: Positional (list) or named (dict) arguments.
            **options: Other Command fields (isolation, timeout,
                cache_ttl, stale_ttl), under their Python or wire names.

        Raises:
            ValidationError: On unknown or invalid options.
        """
        return await self.submit(_command(statement, arguments, Mode.QUERY, options))

    async def exec(self, statement: str, arguments: Any = None, **options: Any) -> Response:
        """Submit an exec command that returns a single result."""
        return await self.submit(_command(statement, arguments, Mode.EXEC, options))

    def _build_headers(self) -> dict[str, str]:
        """Build headers sent with every request."""
        return {
            "User-Agent": "db-connect-python/0.1.0",
            **credential_headers(self.config),
        }

    def __repr__(self) -> str:
        return f"DbConnect(host={self.config.host!r})"


def _command(statement: str, arguments: Any, mode: Mode, options: Mapping[str, Any]) -> Command:
    if "mode" in options:
        raise ValidationError("mode", repr(options["mode"]), f"mode is fixed to {mode} here; use submit()")
    return Command.from_dict(
        {**options, "statement": statement, "arguments": arguments, "mode": mode}
    )
