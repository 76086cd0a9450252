"""
Core data models for db-connect.

This module defines the commands sent to the tunnel endpoint, the
connection configuration, and the request/response records that flow
through the caching fetch layer.
"""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from multidict import CIMultiDict

from dbconnect.core.exceptions import ValidationError
from dbconnect.core.validation import (
    CACHE_DISABLED,
    check_credentials,
    normalize_host,
    validate_arguments,
    validate_choice,
    validate_statement,
    validate_timeout,
    validate_ttl,
)


class Mode(Enum):
    """Kind of command.

    query returns a set of rows, exec returns a single result.
    """

    QUERY = "query"
    EXEC = "exec"

    def __str__(self) -> str:
        return self.value


class Isolation(Enum):
    """Transaction isolation level passed through to the upstream."""

    NONE = "none"
    DEFAULT = "default"
    READ_UNCOMMITTED = "read_uncommitted"
    READ_COMMITTED = "read_committed"
    WRITE_COMMITTED = "write_committed"
    REPEATABLE_READ = "repeatable_read"
    SNAPSHOT = "snapshot"
    SERIALIZABLE = "serializable"
    LINEARIZABLE = "linearizable"

    def __str__(self) -> str:
        return self.value


# Wire (camelCase) and Python (snake_case) names accepted by Command.from_dict
_COMMAND_KEYS = {
    "statement": "statement",
    "arguments": "arguments",
    "args": "arguments",
    "mode": "mode",
    "isolation": "isolation",
    "timeout": "timeout",
    "cacheTtl": "cache_ttl",
    "cache_ttl": "cache_ttl",
    "staleTtl": "stale_ttl",
    "stale_ttl": "stale_ttl",
}


@dataclass(frozen=True)
class Command:
    """A standard, non-vendor format for submitting database commands.

    Every field resolves to a concrete value during construction:
    arguments default to an empty list, mode to query, isolation to none,
    timeout to 0 (indefinite), cache_ttl to -1 (no caching), and
    stale_ttl to the resolved cache_ttl.

    Raises:
        ValidationError: If the statement is missing or a field is invalid.
    """

    statement: str | None = None
    arguments: Any = None
    mode: Mode | str | None = None
    isolation: Isolation | str | None = None
    timeout: float | None = None
    cache_ttl: int | None = None
    stale_ttl: int | None = None

    def __post_init__(self) -> None:
        cache_ttl = validate_ttl("cache_ttl", self.cache_ttl, CACHE_DISABLED)
        resolved = {
            "statement": validate_statement(self.statement),
            "arguments": validate_arguments(self.arguments),
            "mode": validate_choice("mode", self.mode, Mode, Mode.QUERY),
            "isolation": validate_choice(
                "isolation", self.isolation, Isolation, Isolation.NONE
            ),
            "timeout": validate_timeout(self.timeout),
            "cache_ttl": cache_ttl,
            "stale_ttl": validate_ttl("stale_ttl", self.stale_ttl, cache_ttl),
        }
        for name, value in resolved.items():
            object.__setattr__(self, name, value)

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "Command":
        """Create a Command from a loosely-typed parameter record.

        Accepts both wire names (cacheTtl) and Python names (cache_ttl).

        Raises:
            ValidationError: On unknown keys, a missing statement, or
                invalid field values.
        """
        if isinstance(params, Command):
            return params
        if not isinstance(params, Mapping):
            raise ValidationError("command", repr(params), "command must be a mapping")

        kwargs: dict[str, Any] = {}
        for key, value in params.items():
            name = _COMMAND_KEYS.get(key)
            if name is None:
                raise ValidationError(key, repr(value), "unknown command parameter")
            kwargs[name] = value

        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire record sent to the tunnel endpoint."""
        return {
            "statement": self.statement,
            "arguments": self.arguments,
            "mode": self.mode.value,
            "isolation": self.isolation.value,
            "timeout": self.timeout,
            "cacheTtl": self.cache_ttl,
            "staleTtl": self.stale_ttl,
        }

    def to_json(self) -> str:
        """Serialize to canonical JSON (sorted keys, compact separators)."""
        return json.dumps(
            self.to_dict(), sort_keys=True, separators=(",", ":"), allow_nan=False
        )


@dataclass(frozen=True)
class ConnectionConfig:
    """Host and optional Access credentials for a connection.

    Bare hostnames are prefixed with https://. Credentials must be given
    as a pair or not at all.

    Raises:
        ConfigurationError: If the host is missing or only one credential
            is given.
    """

    host: str
    client_id: str | None = None
    client_secret: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", normalize_host(self.host))
        check_credentials(self.client_id, self.client_secret)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ConnectionConfig":
        """Build a config from DB_CONNECT_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("DB_CONNECT_HOST", ""),
            client_id=env.get("DB_CONNECT_CLIENT_ID") or None,
            client_secret=env.get("DB_CONNECT_CLIENT_SECRET") or None,
        )

    @property
    def has_credentials(self) -> bool:
        """Return True if both client credentials are configured."""
        return bool(self.client_id and self.client_secret)

    @property
    def base_url(self) -> str:
        """Return the host URL with a trailing slash for path joining."""
        return self.host if self.host.endswith("/") else f"{self.host}/"

    def __repr__(self) -> str:
        secret = "***" if self.client_secret else None
        return (
            f"ConnectionConfig(host={self.host!r}, client_id={self.client_id!r}, "
            f"client_secret={secret!r})"
        )


@dataclass(frozen=True)
class RequestDescriptor:
    """An outgoing request: the source of both a cache key and an origin call."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass
class Response:
    """A fully-buffered HTTP response.

    Operational failures are reported through this object rather than
    raised: check ``ok`` before decoding the body.
    """

    status: int
    body: bytes = b""
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    url: str = ""
    redirected: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers)

    @property
    def ok(self) -> bool:
        """Return True for 2xx statuses."""
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body as text."""
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.body)

    def copy(self) -> "Response":
        """Return an independent copy with its own header mapping."""
        return replace(self, headers=CIMultiDict(self.headers))
