"""Turn transport responses into decoded values or typed failures."""

from __future__ import annotations

from typing import Any

from .exceptions import FetchLayerAuthError, FetchLayerHTTPError, FetchLayerRateLimitError
from .models import JSON_MEDIA_TYPE, TransportResponse
from .security import parse_retry_after


def raise_for_status(response: TransportResponse) -> None:
    if response.ok:
        return
    if response.status_code in {401, 403}:
        raise FetchLayerAuthError(response)
    if response.status_code == 429:
        raise FetchLayerRateLimitError(
            response,
            retry_after=parse_retry_after(response.header("Retry-After")),
        )
    raise FetchLayerHTTPError(response)


def classify_response(response: TransportResponse, *, parse_json: bool) -> Any:
    """Return decoded JSON, the raw response, or raise for non-2xx statuses.

    JSON is decoded only when ``parse_json`` is set and the content type
    declares it. Decoding errors are not wrapped.
    """
    raise_for_status(response)
    if parse_json and JSON_MEDIA_TYPE in response.content_type:
        return response.json()
    return response
