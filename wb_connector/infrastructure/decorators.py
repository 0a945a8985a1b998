"""
Infrastructure-specific decorators, providing cross-cutting concerns like
retry logic for network operations.
"""

import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

logger = logging.getLogger(__name__)

# --- Defaults for Retry Logic (overridable from settings.toml) ---
RETRY_ATTEMPTS = 3
RETRY_MIN_WAIT_SECONDS = 1
RETRY_MAX_WAIT_SECONDS = 10

# Connection faults, timeouts, broken bodies and non-2xx statuses are all
# treated as transient. Decoding errors are not listed and so never retried.
RETRYABLE_ERRORS = (httpx.TransportError, httpx.HTTPStatusError)


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.warning(
        f"Retrying {retry_state.fn.__name__} in {next_attempt_in:.2f}s due to "
        f"{type(exception).__name__}: {exception} "
        f"(attempt {retry_state.attempt_number})..."
    )


def retry_on_network_error(
    attempts: int = RETRY_ATTEMPTS,
    min_wait: float = RETRY_MIN_WAIT_SECONDS,
    max_wait: float = RETRY_MAX_WAIT_SECONDS,
):
    """Builds a retry decorator for async network operations."""
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_before_retry,
        reraise=True,
    )
