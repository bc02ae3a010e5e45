"""
Shared retry policy for HTTP providers.

The records adapter and the index client both retry transport failures,
429 and 5xx responses with exponential backoff. Hansard also answers
request bursts with a plain 400, so the adapter passes that status as an
extra throttling signal.

Responsibility: tenacity retry configuration for network operations
"""

import logging
from typing import Collection, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE_STATUSES = frozenset({429})


def is_transient(exc: BaseException, throttle_statuses: Collection[int] = DEFAULT_THROTTLE_STATUSES) -> bool:
    """Transport errors, 5xx and throttling statuses are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status in throttle_statuses
    return False


def http_retrying(
    max_attempts: int,
    throttle_statuses: Collection[int] = DEFAULT_THROTTLE_STATUSES,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    log: Optional[logging.Logger] = None,
) -> AsyncRetrying:
    """
    Build an ``AsyncRetrying`` loop for one HTTP call.

    The last exception is re-raised unchanged once attempts run out, so
    callers can still tell a connection failure from an HTTP error.

    Example:
        async for attempt in http_retrying(3):
            with attempt:
                response = await client.get(path)
                response.raise_for_status()
    """
    return AsyncRetrying(
        retry=retry_if_exception(lambda exc: is_transient(exc, throttle_statuses)),
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(min=min_wait, max=max_wait),
        before_sleep=before_sleep_log(log or logger, logging.WARNING),
        reraise=True,
    )
