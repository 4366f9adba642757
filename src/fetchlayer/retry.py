"""Bounded retries with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from .exceptions import FetchLayerHTTPError, FetchLayerTimeoutError
from .types import RetryPredicate

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504, 520, 521, 522, 524})


def backoff_delay(attempt: int, retry_delay: float) -> float:
    """Delay before retry number ``attempt`` (1-based): ``retry_delay * 2 ** (attempt - 1)``."""
    return retry_delay * (2 ** max(0, attempt - 1))


def is_transient_error(exc: BaseException) -> bool:
    """Opt-in policy: retry timeouts, transient HTTP statuses and httpx transport faults."""
    if isinstance(exc, FetchLayerTimeoutError):
        return True
    if isinstance(exc, FetchLayerHTTPError):
        return exc.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, httpx.TransportError)


async def retry_with_backoff(
    attempt: Callable[[], Awaitable[T]],
    retries: int,
    retry_delay: float,
    *,
    should_retry: RetryPredicate | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Run ``attempt`` until it succeeds or ``retries`` retries are used up.

    The last failure is re-raised unchanged. Without ``should_retry`` every
    exception is considered retryable; cancellation never is.
    """
    attempts = 0
    while True:
        try:
            return await attempt()
        except Exception as exc:
            attempts += 1
            if attempts > retries:
                raise
            if should_retry is not None and not should_retry(exc):
                raise
            wait = backoff_delay(attempts, retry_delay)
            logger.debug(
                "attempt %d of %d failed with %s, retrying in %.3fs",
                attempts,
                retries + 1,
                type(exc).__name__,
                wait,
            )
            await sleep(wait)
