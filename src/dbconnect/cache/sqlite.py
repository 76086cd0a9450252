"""
SQLite-based cache store.

Provides persistent caching for tunnel responses, so that short-lived
processes such as the CLI share cached results. Entries expire once
their max-age plus stale-while-revalidate window has elapsed.
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from dbconnect.cache.base import CacheStore
from dbconnect.cache.control import parse_cache_control
from dbconnect.core.exceptions import CacheError
from dbconnect.core.models import RequestDescriptor, Response


class SqliteCache(CacheStore):
    """SQLite-based store for tunnel responses.

    Each row holds a full response (status, headers, body) keyed by the
    cache key URL. Lookups only return rows whose serving window has
    not elapsed; expired rows stay until ``cleanup`` removes them.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the cache store.

        Args:
            db_path: Path to SQLite database file. Defaults to ~/.dbconnect/cache.db
        """
        if db_path is None:
            db_path = Path.home() / ".dbconnect" / "cache.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize the cache database schema."""
        try:
            with self._connection() as conn:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS responses (
                        key TEXT PRIMARY KEY,
                        method TEXT NOT NULL,
                        status INTEGER NOT NULL,
                        headers TEXT NOT NULL,
                        body BLOB NOT NULL,
                        url TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        expires_at TIMESTAMP NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_expires
                    ON responses(expires_at);
                """)
        except sqlite3.Error as e:
            raise CacheError("initialization", str(e))

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection context manager.

        Yields:
            sqlite3.Connection that auto-commits on success.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise CacheError("database operation", str(e))
        finally:
            conn.close()

    async def match(
        self,
        key: RequestDescriptor,
        ignore_method: bool = True,
    ) -> Response | None:
        return self.get(key, ignore_method)

    async def put(self, key: RequestDescriptor, response: Response) -> None:
        self.set(key, response)

    def get(self, key: RequestDescriptor, ignore_method: bool = True) -> Optional[Response]:
        """Get a stored response if its serving window has not elapsed.

        Args:
            key: Cache key request.
            ignore_method: Match regardless of the stored method.

        Returns:
            The stored response, or None if not found or expired.
        """
        try:
            with self._connection() as conn:
                row = conn.execute(
                    """
                    SELECT method, status, headers, body, url FROM responses
                    WHERE key = ? AND expires_at > datetime('now')
                    """,
                    (key.url,),
                ).fetchone()

                if row is None:
                    return None
                if not ignore_method and row["method"] != key.method:
                    return None

                return Response(
                    status=row["status"],
                    body=bytes(row["body"]),
                    headers=json.loads(row["headers"]),
                    url=row["url"],
                )

        except (sqlite3.Error, json.JSONDecodeError) as e:
            raise CacheError("get", str(e))

    def set(self, key: RequestDescriptor, response: Response) -> None:
        """Store a response for as long as its Cache-Control allows.

        Responses marked no-store, or with a zero serving window, are
        not written.

        Args:
            key: Cache key request.
            response: Response carrying a Cache-Control header.
        """
        directive = parse_cache_control(response.headers.get("Cache-Control"))
        if not directive.storable or directive.lifetime <= 0:
            return

        try:
            headers_json = json.dumps(dict(response.headers))

            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO responses
                        (key, method, status, headers, body, url, expires_at)
                    VALUES (?, ?, ?, ?, ?, ?, datetime('now', ? || ' seconds'))
                    """,
                    (
                        key.url,
                        key.method,
                        response.status,
                        headers_json,
                        response.body,
                        response.url,
                        str(directive.lifetime),
                    ),
                )

        except (sqlite3.Error, TypeError) as e:
            raise CacheError("set", str(e))

    def invalidate(self, pattern: str) -> int:
        """Invalidate cache entries matching pattern.

        Args:
            pattern: SQL LIKE pattern over keys (e.g., "https://sql.example.com/%").

        Returns:
            Number of entries deleted.
        """
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM responses WHERE key LIKE ?",
                    (pattern,),
                )
                return cursor.rowcount

        except sqlite3.Error as e:
            raise CacheError("invalidate", str(e))

    def cleanup(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM responses WHERE expires_at <= datetime('now')"
                )
                return cursor.rowcount

        except sqlite3.Error as e:
            raise CacheError("cleanup", str(e))

    def clear(self) -> int:
        """Clear all cache entries.

        Returns:
            Number of entries removed.
        """
        return self.invalidate("%")

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with entry counts, database size, and entries per endpoint.
        """
        try:
            with self._connection() as conn:
                total = conn.execute("SELECT COUNT(*) FROM responses").fetchone()[0]

                valid = conn.execute(
                    "SELECT COUNT(*) FROM responses WHERE expires_at > datetime('now')"
                ).fetchone()[0]

                # Submitted commands are keyed under <base>/submit/_/<hash>
                endpoints = conn.execute(
                    """
                    SELECT
                        CASE WHEN INSTR(key, '/_/') > 0
                             THEN SUBSTR(key, 1, INSTR(key, '/_/') - 1)
                             ELSE key END as endpoint,
                        COUNT(*) as count
                    FROM responses
                    WHERE expires_at > datetime('now')
                    GROUP BY endpoint
                    """
                ).fetchall()

                db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

                return {
                    "total_entries": total,
                    "valid_entries": valid,
                    "expired_entries": total - valid,
                    "db_size_bytes": db_size,
                    "db_path": str(self.db_path),
                    "entries_by_endpoint": {row["endpoint"]: row["count"] for row in endpoints},
                }

        except sqlite3.Error as e:
            raise CacheError("stats", str(e))
