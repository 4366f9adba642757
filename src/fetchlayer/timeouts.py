"""Per-attempt deadline enforcement."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .exceptions import FetchLayerTimeoutError

T = TypeVar("T")


async def with_timeout(call: Callable[[], Awaitable[T]], timeout: float) -> T:
    """Await ``call()`` for at most ``timeout`` seconds.

    On expiry the in-flight call is cancelled and ``FetchLayerTimeoutError``
    is raised. Any other failure propagates unchanged, including a
    ``TimeoutError`` raised by the call itself.
    """
    if sys.version_info < (3, 11):
        # asyncio.TimeoutError is not the builtin TimeoutError here
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise FetchLayerTimeoutError(timeout, cause=exc) from exc

    scope = asyncio.timeout(timeout)
    try:
        async with scope:
            return await call()
    except TimeoutError as exc:
        if not scope.expired():
            raise
        raise FetchLayerTimeoutError(timeout, cause=exc) from exc
