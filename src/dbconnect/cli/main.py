"""
Main CLI entry point for db-connect.

Provides commands for pinging a tunnel, submitting query and exec
commands, and managing the local response cache.
"""

import asyncio
import json
import sys
from typing import Any, Optional

import click

from dbconnect import __version__
from dbconnect.cache.memory import MemoryCache
from dbconnect.cache.sqlite import SqliteCache
from dbconnect.cli.output import (
    print_error,
    print_info,
    print_rows,
    print_success,
)
from dbconnect.connection import DbConnect
from dbconnect.core.exceptions import DbConnectError
from dbconnect.core.logging import configure_logging
from dbconnect.core.models import Command, Isolation, Mode, Response


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def parse_argument(value: str) -> Any:
    """Parse a command-line argument as a JSON literal, else keep the text.

    "21" becomes 21, "null" becomes None, "matthew" stays "matthew".
    """
    try:
        return json.loads(value)
    except ValueError:
        return value


def _connect(ctx: click.Context, no_cache: bool) -> DbConnect:
    """Create a connection from the group options."""
    cache = MemoryCache() if no_cache else SqliteCache()
    return DbConnect(
        ctx.obj.get("host"),
        ctx.obj.get("client_id"),
        ctx.obj.get("client_secret"),
        cache=cache,
    )


async def _call(db: DbConnect, command: Optional[Command] = None) -> Response:
    async with db:
        if command is None:
            return await db.ping()
        return await db.submit(command)


@click.group()
@click.version_option(version=__version__, prog_name="dbconnect")
@click.option(
    "--host",
    envvar="DB_CONNECT_HOST",
    help="Hostname or URL of the tunnel running in db-connect mode.",
)
@click.option(
    "--client-id",
    envvar="DB_CONNECT_CLIENT_ID",
    help="Client id of the Access service token.",
)
@click.option(
    "--client-secret",
    envvar="DB_CONNECT_CLIENT_SECRET",
    help="Client secret of the Access service token.",
)
@click.option(
    "--log-level",
    envvar="DB_CONNECT_LOG_LEVEL",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    help="Minimum level of log messages.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    host: Optional[str],
    client_id: Optional[str],
    client_secret: Optional[str],
    log_level: str,
) -> None:
    """db-connect - Query your database through an Argo Tunnel.

    Commands are sent over HTTP to a tunnel running in db-connect mode,
    optionally authenticated with a Cloudflare Access service token.
    """
    configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["host"] = host
    ctx.obj["client_id"] = client_id
    ctx.obj["client_secret"] = client_secret


@cli.command()
@click.pass_context
def ping(ctx: click.Context) -> None:
    """Test the connection to the database.

    Exits non-zero if the tunnel cannot be reached or rejects the
    credentials.
    """
    try:
        resp = run_async(_call(_connect(ctx, no_cache=True)))
    except DbConnectError as e:
        print_error(str(e))
        sys.exit(1)

    if not resp.ok:
        print_error(f"Ping failed ({resp.status}): {resp.text()}")
        sys.exit(1)

    print_success(f"Connected to {ctx.obj.get('host')}")


def command_options(f):
    """Options shared by the query and exec commands."""
    options = [
        click.argument("statement"),
        click.argument("arguments", nargs=-1),
        click.option(
            "--isolation", "-i",
            type=click.Choice([level.value for level in Isolation]),
            default=Isolation.NONE.value,
            help="Transaction isolation level.",
        ),
        click.option(
            "--timeout", "-t",
            type=float,
            default=0,
            help="Seconds the database may spend on the command (0 = indefinite).",
        ),
        click.option(
            "--cache-ttl",
            type=int,
            default=-1,
            help="Seconds to cache the response (-1 = do not cache).",
        ),
        click.option(
            "--stale-ttl",
            type=int,
            default=None,
            help="Seconds to serve the response stale after --cache-ttl.",
        ),
        click.option(
            "--format", "-f", "output_format",
            type=click.Choice(["table", "json"]),
            default="table",
            help="Output format.",
        ),
        click.option(
            "--no-cache",
            is_flag=True,
            help="Do not read or write the local cache.",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return click.pass_context(f)


def _submit(ctx: click.Context, mode: Mode, **params: Any) -> None:
    """Build, submit, and print a command."""
    output_format = params.pop("output_format")
    no_cache = params.pop("no_cache")
    arguments = [parse_argument(a) for a in params.pop("arguments")]

    try:
        command = Command(arguments=arguments, mode=mode, **params)
        resp = run_async(_call(_connect(ctx, no_cache), command))
    except DbConnectError as e:
        print_error(str(e))
        sys.exit(1)

    if not resp.ok:
        print_error(f"Command failed ({resp.status}): {resp.text()}")
        sys.exit(1)

    try:
        result = resp.json()
    except ValueError:
        click.echo(resp.text())
        return

    if output_format == "table" and isinstance(result, list) and all(
        isinstance(row, dict) for row in result
    ):
        print_rows(result)
    else:
        click.echo(json.dumps(result, indent=2))


@cli.command()
@command_options
def query(ctx: click.Context, **params: Any) -> None:
    """Run a query that returns rows.

    Positional ARGUMENTS are bound to the statement's placeholders and
    parsed as JSON literals where possible.

    \b
    Examples:
        dbconnect query 'SELECT * FROM users'
        dbconnect query 'SELECT * FROM users WHERE age > ?' 21
        dbconnect query 'SELECT COUNT(*) FROM users' --cache-ttl 60
    """
    _submit(ctx, Mode.QUERY, **params)


@cli.command(name="exec")
@command_options
def exec_(ctx: click.Context, **params: Any) -> None:
    """Execute a statement that returns a single result.

    \b
    Examples:
        dbconnect exec 'CREATE TABLE firewall (ip INT)'
        dbconnect exec 'INSERT INTO firewall VALUES (?)' 1111 -i serializable
    """
    _submit(ctx, Mode.EXEC, **params)


@cli.command()
@click.option("--clear", is_flag=True, help="Clear all cached responses.")
@click.option("--stats", is_flag=True, help="Show cache statistics.")
@click.option("--cleanup", is_flag=True, help="Remove expired entries.")
@click.option("--invalidate", type=str, help="Invalidate entries whose key matches pattern (e.g., 'https://sql.mysite.com/%')")
def cache(clear: bool, stats: bool, cleanup: bool, invalidate: Optional[str]) -> None:
    """Manage the local response cache.

    Responses are cached only for commands submitted with a
    non-negative --cache-ttl or --stale-ttl.

    \b
    Examples:
        dbconnect cache --stats       # Show cache statistics
        dbconnect cache --clear       # Clear all cached responses
        dbconnect cache --cleanup     # Remove only expired entries
    """
    try:
        cache_store = SqliteCache()

        if clear:
            count = cache_store.clear()
            print_success(f"Cache cleared. Removed {count} entries.")
        elif cleanup:
            count = cache_store.cleanup()
            print_success(f"Cleanup complete. Removed {count} expired entries.")
        elif invalidate:
            count = cache_store.invalidate(invalidate)
            print_success(f"Invalidated {count} entries matching '{invalidate}'.")
        elif stats:
            cache_stats = cache_store.stats()
            click.echo("\nCache Statistics:")
            click.echo(f"  Database: {cache_stats['db_path']}")
            click.echo(f"  Size: {cache_stats['db_size_bytes'] / 1024:.1f} KB")
            click.echo(f"  Total entries: {cache_stats['total_entries']}")
            click.echo(f"  Valid entries: {cache_stats['valid_entries']}")
            click.echo(f"  Expired entries: {cache_stats['expired_entries']}")

            if cache_stats["entries_by_endpoint"]:
                click.echo("\n  Entries by endpoint:")
                for endpoint, count in cache_stats["entries_by_endpoint"].items():
                    click.echo(f"    {endpoint}: {count}")
        else:
            ctx = click.get_current_context()
            print_info("No action given.")
            click.echo(ctx.get_help())

    except DbConnectError as e:
        print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    cli()
