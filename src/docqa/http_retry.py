"""
Retry policy shared by the embedding and generation clients.

Only transient failures are retried: transport errors (connection resets,
timeouts) and 5xx responses. Any 4xx, including auth failures, fails fast.
"""

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)


def is_transient_error(exc: BaseException) -> bool:
    """Return True if a failed request is worth one more attempt."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def transient_retrying(max_attempts: int = 2, delay: float = 1.0) -> AsyncRetrying:
    """
    Build an async retry controller for a single HTTP call.

    Args:
        max_attempts: Total attempts including the first one
        delay: Seconds to wait between attempts

    Returns:
        AsyncRetrying that re-raises the last error once attempts run out

    Example:
        >>> async for attempt in transient_retrying():
        ...     with attempt:
        ...         response = await client.post(url, json=payload)
        ...         response.raise_for_status()
    """
    return AsyncRetrying(
        retry=retry_if_exception(is_transient_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(delay),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
