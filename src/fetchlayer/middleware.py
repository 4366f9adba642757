"""Middleware composition and bundled plugins.

A middleware is ``async (config, next) -> result``. It may change the
configuration before calling ``next``, return a substitute result without
calling ``next``, or observe the call. Failures from ``next`` must be
re-raised unless the middleware exists to substitute a value.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .models import RequestConfig
from .security import sanitize_headers
from .types import Middleware, NextFn


def compose(middlewares: Sequence[Middleware], handler: NextFn) -> NextFn:
    """Wrap ``handler`` so the last middleware in the sequence runs first."""
    call = handler
    for middleware in middlewares:
        call = _bind(middleware, call)
    return call


def _bind(middleware: Middleware, next_fn: NextFn) -> NextFn:
    async def call(config: RequestConfig) -> Any:
        return await middleware(config, next_fn)

    return call


def auth_middleware(token: str, *, scheme: str = "Bearer") -> Middleware:
    async def middleware(config: RequestConfig, next: NextFn) -> Any:
        return await next(config.with_headers({"Authorization": f"{scheme} {token}"}))

    return middleware


def headers_middleware(**headers: str) -> Middleware:
    async def middleware(config: RequestConfig, next: NextFn) -> Any:
        return await next(config.with_headers(headers))

    return middleware


def logging_middleware(logger: logging.Logger | None = None) -> Middleware:
    log = logger or logging.getLogger(__name__)

    async def middleware(config: RequestConfig, next: NextFn) -> Any:
        log.debug("-> %s %s headers=%s", config.method, config.path, sanitize_headers(config.headers))
        start = time.monotonic()
        try:
            result = await next(config)
        except Exception as exc:
            log.error("%s %s - Error: %s", config.method, config.path, exc)
            raise
        elapsed_ms = int((time.monotonic() - start) * 1000)
        log.info("%s %s - %dms", config.method, config.path, elapsed_ms)
        return result

    return middleware


@dataclass
class _CacheEntry:
    data: Any
    stored_at: float


def cache_middleware(
    ttl: float = 60.0,
    *,
    clock: Callable[[], float] = time.monotonic,
    cache: dict[str, Any] | None = None,
) -> Middleware:
    """Memoize successful GET results for ``ttl`` seconds.

    Entries are keyed by the full request configuration. Set
    ``extensions={"no_cache": True}`` on a request to bypass the cache.
    Expired entries are dropped whenever a new result is stored. Pass
    ``cache`` to share storage between clients.
    """
    if cache is None:
        cache = {}
    lock = asyncio.Lock()

    async def middleware(config: RequestConfig, next: NextFn) -> Any:
        if config.method != "GET" or config.extensions.get("no_cache"):
            return await next(config)

        key = config.cache_key()
        async with lock:
            entry = cache.get(key)
            if entry is not None:
                if clock() - entry.stored_at < ttl:
                    return entry.data
                del cache[key]

        data = await next(config)
        async with lock:
            now = clock()
            for stale in [k for k, e in cache.items() if now - e.stored_at >= ttl]:
                del cache[stale]
            cache[key] = _CacheEntry(data=data, stored_at=now)
        return data

    return middleware
