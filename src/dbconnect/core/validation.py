"""
Input validation utilities for db-connect.

Each validator either returns the normalized value or raises a
ValidationError naming the offending field.
"""

import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, TypeVar

from dbconnect.core.exceptions import ConfigurationError, ValidationError

# Sentinel TTL meaning "do not cache"
CACHE_DISABLED = -1

_SCHEMES = ("http://", "https://")

E = TypeVar("E", bound=Enum)


def validate_statement(statement: Any) -> str:
    """Validate a command statement.

    Args:
        statement: The statement text.

    Returns:
        The statement unchanged.

    Raises:
        ValidationError: If the statement is missing, empty, or not text.
    """
    if statement is None or statement == "":
        raise ValidationError("statement", "", "statement is a required argument")
    if not isinstance(statement, str):
        raise ValidationError("statement", repr(statement), "statement must be a string")
    return statement


def validate_arguments(arguments: Any) -> list[Any] | dict[str, Any]:
    """Validate command arguments.

    Positional arguments become a list, named arguments a dict.
    None resolves to an empty list.

    Raises:
        ValidationError: If arguments are neither a sequence nor a mapping.
    """
    if arguments is None:
        return []
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if isinstance(arguments, Sequence) and not isinstance(arguments, (str, bytes)):
        return list(arguments)
    raise ValidationError(
        "arguments", repr(arguments), "arguments must be a sequence or a mapping"
    )


def validate_choice(field: str, value: Any, enum_type: type[E], default: E) -> E:
    """Resolve a value to a member of enum_type.

    Accepts either an enum member or its string value.

    Raises:
        ValidationError: If the value is not one of the enum's values.
    """
    if value is None:
        return default
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(field, str(value), f"must be one of: {allowed}")


def validate_timeout(timeout: Any) -> float:
    """Validate a command timeout in seconds (0 means indefinite).

    Raises:
        ValidationError: If the timeout is not a finite, non-negative number.
    """
    if timeout is None:
        return 0
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ValidationError("timeout", repr(timeout), "timeout must be a number")
    if not math.isfinite(timeout):
        raise ValidationError("timeout", str(timeout), "timeout must be a finite number")
    if timeout < 0:
        raise ValidationError("timeout", str(timeout), "timeout cannot be negative")
    return timeout


def validate_ttl(field: str, ttl: Any, default: int) -> int:
    """Validate a cache TTL in seconds.

    Any negative value disables the corresponding cache window.

    Raises:
        ValidationError: If the TTL is not an integer.
    """
    if ttl is None:
        return default
    if isinstance(ttl, bool) or not isinstance(ttl, int):
        raise ValidationError(field, repr(ttl), f"{field} must be an integer")
    return ttl


def normalize_host(host: str | None) -> str:
    """Validate a host and make sure it carries a scheme.

    Args:
        host: Hostname or URL of the tunnel endpoint.

    Returns:
        The host as a URL, prefixed with https:// when no scheme was given.

    Raises:
        ConfigurationError: If the host is missing.
    """
    if not host:
        raise ConfigurationError("host is a required argument")
    if not host.startswith(_SCHEMES):
        host = f"https://{host}"
    return host


def check_credentials(client_id: str | None, client_secret: str | None) -> None:
    """Require that client credentials are given together or not at all.

    Raises:
        ConfigurationError: If exactly one of the pair is present.
    """
    if bool(client_id) != bool(client_secret):
        raise ConfigurationError("both client_id and client_secret must be specified")
