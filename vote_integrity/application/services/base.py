"""Base service logging mixin.

Provides the LoggingMixin class for standardized structured logging across
all engine services.

Usage:
    from vote_integrity.application.services.base import LoggingMixin

    class MyService(LoggingMixin):
        def __init__(self) -> None:
            self._init_logger(component="tally")

        def do_something(self, ballot_id: str) -> None:
            log = self._log_operation("do_something", ballot_id=ballot_id)
            log.info("operation_started")
            # ... do work ...
            log.info("operation_completed")
"""

import structlog

from vote_integrity.infrastructure.observability.correlation import get_correlation_id
from vote_integrity.infrastructure.observability.logging import get_logger_for_service


class LoggingMixin:
    """Mixin providing structured logging for services.

    The logger is bound with:
    - service: The class name of the service
    - component: "integrity" (hashing, Merkle) or "tally" (counting, quorum)

    Each operation gets:
    - operation: The name of the operation being performed
    - correlation_id: From context for tracing one tally or verification run
    - Any additional context passed to _log_operation()

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "integrity") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__.

        Args:
            component: The component type for log categorization.
        """
        self._log = get_logger_for_service(self.__class__.__name__, component)

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create operation-scoped logger with correlation ID.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind to the logger.

        Returns:
            BoundLogger with operation and correlation context.

        Example:
            log = self._log_operation("build_tree", leaf_count=len(leaves))
            log.info("merkle_tree_build_started")
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
