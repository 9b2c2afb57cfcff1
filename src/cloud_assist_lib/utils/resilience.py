"""Retry policies for transient failures when calling the backend.

Only idempotent reads are retried. Requests that create resources or start
operations are sent once.
"""

import logging
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient_error(exc: BaseException) -> bool:
    """Connection problems, throttling and server errors are worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, httpx.TransportError)


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    """Log the failure that triggered a retry."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"[Resilience] Retry attempt {retry_state.attempt_number} for "
        f"{retry_state.fn.__name__} after {retry_state.seconds_since_start:.1f}s. "
        f"Exception: {exception or 'Unknown'}"
    )


def create_custom_retry(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 8,
    multiplier: float = 0.5,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a retry decorator for transient HTTP failures.

    Args:
        max_attempts: Maximum number of attempts, including the first one
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        multiplier: Exponential backoff multiplier

    Returns:
        A retry decorator that re-raises the last exception once exhausted
    """
    return retry(
        retry=retry_if_exception(is_transient_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        before_sleep=_log_retry_attempt,
        reraise=True,
    )


# Standard policy for idempotent reads: 3 attempts, waits of 0.5s then 1s
transient_http_retry: Callable[[Callable[..., Any]], Callable[..., Any]] = create_custom_retry()
