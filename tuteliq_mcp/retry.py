"""Retry with exponential backoff for transient Tuteliq API failures."""

import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


class RetryableStatus(Exception):
    """Raised inside a retried call when the API answered 429 or 5xx."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


def retry_with_backoff(
    func: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 8.0,
    backoff_factor: float = 2.0,
    retryable_exceptions: tuple[type[Exception], ...] = (
        ConnectionError,
        TimeoutError,
        RetryableStatus,
    ),
) -> T:
    """
    Call ``func`` until it succeeds or ``max_attempts`` is exhausted.

    Args:
        func: Zero-argument callable to retry
        max_attempts: Total attempts, including the first
        initial_delay: Seconds to sleep after the first failure
        max_delay: Upper bound for a single sleep
        backoff_factor: Multiplier applied to the delay after each failure
        retryable_exceptions: Exception types that trigger another attempt

    Returns:
        The value returned by ``func``

    Raises:
        The last retryable exception once attempts run out; any other
        exception immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except retryable_exceptions:
            if attempt == max_attempts:
                raise
            time.sleep(min(delay, max_delay))
            delay *= backoff_factor
    raise RuntimeError("unreachable")
