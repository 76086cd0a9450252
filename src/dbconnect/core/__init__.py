"""
Core module for db-connect.

Contains data models, validation, exceptions, and logging setup.
"""

from dbconnect.core.exceptions import (
    CacheError,
    ConfigurationError,
    DbConnectError,
    NetworkError,
    ValidationError,
)
from dbconnect.core.models import (
    Command,
    ConnectionConfig,
    Isolation,
    Mode,
    RequestDescriptor,
    Response,
)

__all__ = [
    # Models
    "Command",
    "ConnectionConfig",
    "Isolation",
    "Mode",
    "RequestDescriptor",
    "Response",
    # Exceptions
    "DbConnectError",
    "ConfigurationError",
    "ValidationError",
    "CacheError",
    "NetworkError",
]
