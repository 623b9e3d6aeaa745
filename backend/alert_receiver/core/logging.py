"""
Structured logging configuration.

Provides JSON-structured logging for production and readable text for development.
"""
import logging
import re
import sys
from typing import Any

import structlog

from alert_receiver.core.config import settings

# Keys whose values never reach the log output
SENSITIVE_FIELDS = (
    "password",
    "token",
    "api_key",
    "secret",
    "authorization",
)

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z][a-z0-9+.-]*://)[^/@\s]+@", re.IGNORECASE)


def setup_logging() -> None:
    """
    Configure logging for the receiver.

    In production: JSON format with timestamps
    In development: Readable text format
    """
    log_level = getattr(logging, settings.LOG_LEVEL)

    if settings.DEBUG:
        configure_development_logging(log_level)
    else:
        configure_production_logging(log_level)


def configure_development_logging(level: int) -> None:
    """Configure logging for development (readable format)."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
    )

    # Silence noisy SQLAlchemy engine logs
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)


def configure_production_logging(level: int) -> None:
    """Configure logging for production (JSON format)."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_sensitive_data,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )


def redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Redact sensitive data from logs.

    Masks receiver tokens, passwords and credentials embedded in URLs
    (graph and logs URLs often carry basic auth).
    """
    redacted = event_dict.copy()

    for key, value in redacted.items():
        if isinstance(key, str) and any(s in key.lower() for s in SENSITIVE_FIELDS):
            redacted[key] = "***REDACTED***"
        elif isinstance(value, str):
            redacted[key] = redact_string(value)

    return redacted


def redact_string(value: str) -> str:
    """Strip userinfo from any URL in the string."""
    return _URL_CREDENTIALS.sub(r"\g<scheme>***@", value)
