"""
Input validation utilities for cost query requests.
"""
import re
from typing import Any, Optional

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
REQUEST_ID_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$')
SCHEDULE_PATTERN = re.compile(r'^(cron|rate)\(.+\)$')

MAX_COMMAND_LENGTH = 2000


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
        """
        super().__init__(message)
        self.field = field
        self.message = message


def validate_command(command: Any) -> str:
    """
    Validate the free-text cost question.

    Args:
        command: Raw message from the request body

    Returns:
        Stripped command

    Raises:
        ValidationError: If the command is missing, not a string, or too long
    """
    if not isinstance(command, str) or not command.strip():
        raise ValidationError('message is required', field='message')

    command = command.strip()
    if len(command) > MAX_COMMAND_LENGTH:
        raise ValidationError(
            f'message must be at most {MAX_COMMAND_LENGTH} characters',
            field='message'
        )
    return command


def validate_email(email: Any) -> Optional[str]:
    """
    Validate an optional recipient address.

    Args:
        email: Address or None

    Returns:
        Stripped address, or None when absent or blank

    Raises:
        ValidationError: If an address is given but malformed
    """
    if email is None:
        return None
    if not isinstance(email, str):
        raise ValidationError('email must be a string', field='email')

    email = email.strip()
    if not email:
        return None

    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Invalid email format', field='email')
    return email


def validate_request_id(request_id: Any) -> Optional[str]:
    """
    Validate an optional caller-supplied request identifier.

    Raises:
        ValidationError: If the identifier has an unexpected format
    """
    if request_id is None or request_id == '':
        return None
    if not isinstance(request_id, str) or not REQUEST_ID_PATTERN.match(request_id):
        raise ValidationError(
            'requestId must be 1-128 letters, digits, hyphens or underscores',
            field='requestId'
        )
    return request_id


def validate_schedule_expression(expression: Any) -> str:
    """
    Validate an EventBridge schedule expression.

    Args:
        expression: 'cron(...)' or 'rate(...)' expression

    Returns:
        Stripped expression

    Raises:
        ValidationError: If the expression is missing or malformed
    """
    if not isinstance(expression, str) or not expression.strip():
        raise ValidationError(
            'cronExpression is required for scheduled reports',
            field='cronExpression'
        )

    expression = expression.strip()
    if not SCHEDULE_PATTERN.match(expression):
        raise ValidationError(
            'cronExpression must look like cron(...) or rate(...)',
            field='cronExpression'
        )
    return expression
