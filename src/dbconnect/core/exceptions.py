"""
Custom exceptions for db-connect.
"""


class DbConnectError(Exception):
    """Base exception for all db-connect errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(DbConnectError):
    """Raised when a connection or command is configured incorrectly.

    Always raised before any network activity and never retried.
    """


class ValidationError(ConfigurationError):
    """Raised when a single field fails validation."""

    def __init__(self, field: str, value: str, reason: str):
        super().__init__(
            f"Validation failed for {field}",
            details=f"Value '{value}' is invalid: {reason}",
        )
        self.field = field
        self.value = value
        self.reason = reason


class CacheError(DbConnectError):
    """Raised when a cache store operation fails."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(f"Cache error during {operation}", details=details)
        self.operation = operation


class NetworkError(DbConnectError):
    """Raised by the transport when the origin cannot be reached."""

    def __init__(self, url: str, status_code: int | None = None, details: str | None = None):
        message = f"Network request failed: {url}"
        if status_code:
            message += f" (status {status_code})"
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code
