"""
Structured logging for db-connect.

The library only emits events through ``get_logger``; applications (or
the CLI) decide how they are rendered by calling ``configure_logging``.
Loggers sit under the stdlib ``dbconnect`` logger, which has a
``NullHandler`` so nothing is printed until then.
"""

import logging
import sys
from typing import Any

import structlog

# Header names whose values must never reach a log line
_REDACTED_KEYS = ("client_secret", "cf-access-client-secret")

# Silent until an application configures logging
logging.getLogger("dbconnect").addHandler(logging.NullHandler())


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential values in log events."""
    for key in list(event_dict):
        if key.lower() in _REDACTED_KEYS:
            event_dict[key] = "***"
    return event_dict


def configure_logging(log_level: str = "warning", json_output: bool = False) -> None:
    """Configure structured logging.

    Args:
        log_level: Minimum level name (debug, info, warning, error).
        json_output: Render JSON lines instead of console output.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.wrap_logger(
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )
