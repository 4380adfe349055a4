"""Shared utilities: validation, logging, metrics, retries and responses."""

from .validators import (
    ValidationError,
    validate_command,
    validate_email,
    validate_request_id,
    validate_schedule_expression,
)
from .structured_logger import (
    StructuredLogger,
    LoggingContext,
    get_structured_logger,
    configure_lambda_logging,
)

__all__ = [
    'ValidationError',
    'validate_command',
    'validate_email',
    'validate_request_id',
    'validate_schedule_expression',
    'StructuredLogger',
    'LoggingContext',
    'get_structured_logger',
    'configure_lambda_logging',
]
