"""
Retry logic with exponential backoff using tenacity.

Only page loads are retried. Filter and toggle requests report their failure
to the user instead.
"""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log,
)
import logging
from typing import Type, Tuple

import requests

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
)


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
    reraise: bool = True,
):
    """
    Decorator for retryable operations with exponential backoff

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds
        retryable_exceptions: Tuple of exception types to retry on
        reraise: Whether to reraise the exception after all retries fail

    Returns:
        Decorator function
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retryable_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=reraise,
    )
