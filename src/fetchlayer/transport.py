"""Transport implementations: send one request, return status, headers and body."""

from __future__ import annotations

import httpx

from .models import RequestConfig, TransportResponse


class HttpxTransport:
    """Default transport backed by ``httpx.AsyncClient``.

    Deadlines are enforced by the client's timeout guard, so requests are
    sent with httpx timeouts disabled. Cancelling the awaiting task abandons
    the underlying connection.
    """

    def __init__(self, httpx_client: httpx.AsyncClient | None = None, *, follow_redirects: bool = True) -> None:
        self._httpx = httpx_client or httpx.AsyncClient(follow_redirects=follow_redirects, trust_env=False)

    async def __call__(self, config: RequestConfig) -> TransportResponse:
        response = await self._httpx.request(
            method=config.method,
            url=config.url,
            headers=config.headers,
            content=config.body,
            timeout=None,
        )
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        await self._httpx.aclose()
