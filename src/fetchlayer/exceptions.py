"""Client-specific exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from .models import TransportResponse


class FetchLayerError(Exception):
    """Base exception for failures raised by the client itself."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        retry_after: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.retry_after = retry_after
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class FetchLayerValidationError(FetchLayerError, ValueError):
    """Raised when client or request configuration is invalid."""


class FetchLayerHTTPError(FetchLayerError):
    """Raised when the server answers with a status outside 2xx."""

    def __init__(
        self,
        response: TransportResponse,
        message: str | None = None,
        *,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(
            message or "request failed",
            status_code=response.status_code,
            body=response.body,
            headers=response.headers,
            retry_after=retry_after,
        )
        self.response = response

    @property
    def status(self) -> int:
        return self.response.status_code


class FetchLayerAuthError(FetchLayerHTTPError):
    """Raised for 401 and 403 responses."""


class FetchLayerRateLimitError(FetchLayerHTTPError):
    """Raised for HTTP 429 responses."""


class FetchLayerTimeoutError(FetchLayerError, TimeoutError):
    """Raised when an attempt exceeds its configured timeout."""

    def __init__(self, timeout: float, *, cause: Exception | None = None) -> None:
        self.timeout = timeout
        super().__init__(f"Request timeout after {self.timeout_ms}ms", cause=cause)

    @property
    def timeout_ms(self) -> int:
        return int(round(self.timeout * 1000))
