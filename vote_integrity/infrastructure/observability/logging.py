"""Structured logging configuration with structlog.

Production emits one JSON object per line for log aggregation; development
uses the colored console renderer.

Log Entry Format:
    {
        "timestamp": "2025-10-22T14:03:07.120000Z",
        "level": "info",
        "event": "merkle_tree_built",
        "correlation_id": "uuid",
        "service": "MerkleTreeService",
        ...additional context
    }

Log lines never carry the HMAC secret, voter identifiers or ballot
contents. Hashes are logged as 8-character prefixes.

Usage:
    from vote_integrity.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")   # JSON output
    configure_structlog(environment="development")  # Console output
"""

import logging
import os
from typing import TextIO, cast

import structlog
from structlog.typing import Processor

from vote_integrity.infrastructure.observability.correlation import (
    correlation_id_processor,
)

# Environment variable for log level (default: INFO)
LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level(level_name: str | None = None) -> int:
    """Get the log level, falling back to the LOG_LEVEL environment variable."""
    if level_name is None:
        level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_structlog(
    environment: str = "production",
    stream: TextIO | None = None,
    level: str | None = None,
) -> None:
    """Configure structlog for the engine.

    Should be called once by the host application at startup.

    Args:
        environment: 'production' for JSON output, 'development' for console.
        stream: Where log lines are written (default: stdout). The CLI
            passes stderr so machine-readable output stays clean.
        level: Level name overriding LOG_LEVEL.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=stream is None)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger_for_service(
    service_name: str, component: str = "integrity"
) -> structlog.BoundLogger:
    """Get a logger with service and component already bound.

    Args:
        service_name: The name of the service (typically class name).
        component: "integrity" or "tally".
    """
    return structlog.get_logger().bind(
        service=service_name,
        component=component,
    )
