"""Asynchronous HTTP client with timeouts, retries and middleware."""

from .classify import classify_response
from .client import FetchLayerClient
from .exceptions import (
    FetchLayerAuthError,
    FetchLayerError,
    FetchLayerHTTPError,
    FetchLayerRateLimitError,
    FetchLayerTimeoutError,
    FetchLayerValidationError,
)
from .middleware import (
    auth_middleware,
    cache_middleware,
    compose,
    headers_middleware,
    logging_middleware,
)
from .models import RequestConfig, TransportResponse
from .request_options import RequestOptions
from .retry import backoff_delay, is_transient_error, retry_with_backoff
from .timeouts import with_timeout
from .transport import HttpxTransport
from .types import Middleware, NextFn, RetryPredicate, Transport

__all__ = [
    "FetchLayerClient",
    "RequestOptions",
    "RequestConfig",
    "TransportResponse",
    "HttpxTransport",
    "FetchLayerError",
    "FetchLayerValidationError",
    "FetchLayerHTTPError",
    "FetchLayerAuthError",
    "FetchLayerRateLimitError",
    "FetchLayerTimeoutError",
    "Middleware",
    "NextFn",
    "Transport",
    "RetryPredicate",
    "compose",
    "auth_middleware",
    "headers_middleware",
    "logging_middleware",
    "cache_middleware",
    "with_timeout",
    "retry_with_backoff",
    "backoff_delay",
    "is_transient_error",
    "classify_response",
]
