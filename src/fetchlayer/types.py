from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import RequestConfig, TransportResponse

NextFn = Callable[["RequestConfig"], Awaitable[Any]]
Middleware = Callable[["RequestConfig", NextFn], Awaitable[Any]]

Transport = Callable[["RequestConfig"], Awaitable["TransportResponse"]]
RetryPredicate = Callable[[BaseException], bool]
