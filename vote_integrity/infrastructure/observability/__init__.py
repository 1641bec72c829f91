"""Observability infrastructure: structured logging and correlation IDs.

Usage:
    from vote_integrity.infrastructure.observability import (
        configure_structlog,
        set_correlation_id,
    )

    configure_structlog(environment="production")
    set_correlation_id(run_id)
"""

from vote_integrity.infrastructure.observability.correlation import (
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from vote_integrity.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_service",
    "set_correlation_id",
]
