"""
Structured JSON logging for Lambda functions.

This module provides a structured logger that outputs JSON-formatted
logs with correlation IDs, context, and standardized fields for
CloudWatch Logs Insights queries.
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)


class StructuredLogger:
    """
    Structured JSON logger for Lambda functions.

    Outputs logs in JSON format with:
    - Timestamp (ISO 8601)
    - Log level
    - Correlation IDs (requestId, cacheKey)
    - Component and operation
    - Message and additional context
    """

    def __init__(
        self,
        component: str,
        request_id: Optional[str] = None,
        cache_key: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component name (e.g., 'CostQueryHandler', 'ReportProcessor')
            request_id: Report request identifier for correlation
            cache_key: Cache key of the query being resolved
        """
        self.component = component
        self.request_id = request_id
        self.cache_key = cache_key
        self.logger = logging.getLogger(component)

        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.logger.setLevel(getattr(logging, log_level, logging.INFO))

    def bind(
        self,
        request_id: Optional[str] = None,
        cache_key: Optional[str] = None
    ) -> 'StructuredLogger':
        """
        Return a logger for the same component with extra correlation ids.

        Args:
            request_id: Report request identifier
            cache_key: Cache key

        Returns:
            New StructuredLogger
        """
        return StructuredLogger(
            component=self.component,
            request_id=request_id or self.request_id,
            cache_key=cache_key or self.cache_key
        )

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Log message
            operation: Operation being performed
            **kwargs: Additional context fields

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
            'level': level,
            'component': self.component,
            'message': message
        }

        if self.request_id:
            log_entry['requestId'] = self.request_id
        if self.cache_key:
            log_entry['cacheKey'] = self.cache_key

        if operation:
            log_entry['operation'] = operation

        if kwargs:
            log_entry['context'] = kwargs

        return json.dumps(log_entry, cls=DecimalEncoder, default=str)

    def debug(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        """Log debug message."""
        self.logger.debug(
            self._format_log('DEBUG', message, operation, **kwargs)
        )

    def info(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        """Log info message."""
        self.logger.info(
            self._format_log('INFO', message, operation, **kwargs)
        )

    def warning(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        """Log warning message."""
        self.logger.warning(
            self._format_log('WARNING', message, operation, **kwargs)
        )

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        error: Optional[Exception] = None,
        **kwargs
    ) -> None:
        """
        Log error message.

        Args:
            message: Log message
            operation: Operation being performed
            error: Exception object if available
            **kwargs: Additional context
        """
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_message'] = str(error)

        self.logger.error(
            self._format_log('ERROR', message, operation, **kwargs)
        )

    def log_state_change(
        self,
        state_type: str,
        old_value: Any,
        new_value: Any
    ) -> None:
        """
        Log state change at INFO level.

        Args:
            state_type: Type of state (reportStatus, ...)
            old_value: Previous value
            new_value: New value
        """
        self.info(
            f'State change: {state_type}',
            operation='state_change',
            state_type=state_type,
            old_value=str(old_value),
            new_value=str(new_value)
        )

    def log_performance(
        self,
        operation: str,
        duration_ms: float,
        **kwargs
    ) -> None:
        """
        Log performance metric at DEBUG level.

        Args:
            operation: Operation name
            duration_ms: Duration in milliseconds
            **kwargs: Additional context
        """
        self.debug(
            f'Performance: {operation}',
            operation='performance',
            operation_name=operation,
            duration_ms=duration_ms,
            **kwargs
        )


class LoggingContext:
    """
    Context manager for logging operation duration.

    Logs operation start, end, and duration. Failures are logged with the
    error type and re-raised.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        operation: str,
        **kwargs
    ):
        """
        Initialize logging context.

        Args:
            logger: StructuredLogger instance
            operation: Operation name
            **kwargs: Additional context
        """
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        """Log operation start."""
        self.start_time = time.time()
        self.logger.debug(
            f'Starting operation: {self.operation}',
            operation=self.operation,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log operation end and duration."""
        if self.start_time is None:
            return False

        self.duration_ms = (time.time() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.error(
                f'Operation failed: {self.operation}',
                operation=self.operation,
                error=exc_val,
                duration_ms=self.duration_ms,
                **self.context
            )
        else:
            self.logger.log_performance(
                self.operation,
                self.duration_ms,
                **self.context
            )
        return False


def get_structured_logger(
    component: str,
    correlation_id: Optional[str] = None,
    request_id: Optional[str] = None,
    cache_key: Optional[str] = None
) -> StructuredLogger:
    """
    Factory function for creating StructuredLogger instances.

    Args:
        component: Name of the component (e.g., 'QueryResolutionEngine')
        correlation_id: Optional correlation ID (alias for request_id)
        request_id: Optional report request identifier
        cache_key: Optional cache key for context

    Returns:
        Configured StructuredLogger instance

    Example:
        >>> logger = get_structured_logger('ReportProcessor', request_id='abc-123')
        >>> logger.info('Processing deferred report')
    """
    if correlation_id and not request_id:
        request_id = correlation_id

    return StructuredLogger(
        component=component,
        request_id=request_id,
        cache_key=cache_key
    )


def configure_lambda_logging():
    """
    Configure logging for Lambda environment.

    Sets up root logger to output to stdout with appropriate format.
    Should be called at module level in Lambda handlers.
    """
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(message)s',
        force=True
    )

    # Quiet third-party libraries unless explicitly debugging
    if log_level != 'DEBUG':
        for name in ('boto3', 'botocore', 'urllib3', 'matplotlib'):
            logging.getLogger(name).setLevel(logging.WARNING)
