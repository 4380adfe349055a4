"""
Retry logic with exponential backoff for throttled AWS calls.
"""

import time
import random
import logging
from typing import Callable, TypeVar

from ..data_access.exceptions import RetryableError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_operation(
    operation: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True
) -> T:
    """
    Retry an operation with exponential backoff.

    Only RetryableError triggers a retry; anything else propagates at once.

    Args:
        operation: Callable to retry
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 30.0)
        jitter: Whether to add random jitter to delay (default: True)

    Returns:
        Result of the operation

    Raises:
        RetryableError: If all retries fail

    Example:
        result = retry_operation(
            lambda: self._call('get_cost_and_usage', **params),
            max_retries=2
        )
    """
    for attempt in range(max_retries + 1):
        try:
            result = operation()

            if attempt > 0:
                logger.info(
                    f"Operation succeeded after {attempt} retries",
                    extra={
                        'attempt': attempt,
                        'max_retries': max_retries
                    }
                )

            return result

        except RetryableError as e:
            if attempt == max_retries:
                logger.error(
                    f"Operation failed after {max_retries} retries",
                    extra={
                        'max_retries': max_retries,
                        'error': str(e)
                    }
                )
                raise

            delay = min(base_delay * (2 ** attempt), max_delay)

            # Add jitter to prevent thundering herd
            if jitter:
                delay += random.uniform(0, 0.1 * delay)

            logger.warning(
                f"Retry attempt {attempt + 1}/{max_retries} after {delay:.2f}s",
                extra={
                    'attempt': attempt + 1,
                    'max_retries': max_retries,
                    'delay_seconds': delay,
                    'error': str(e)
                }
            )

            time.sleep(delay)

    raise RuntimeError('unreachable')
