"""Asynchronous HTTP client with timeouts, retries and middleware."""

from __future__ import annotations

import json
import os
from dataclasses import replace
from typing import Any, Mapping

from pydantic import BaseModel

from .classify import classify_response
from .exceptions import FetchLayerValidationError
from .middleware import compose
from .models import JSON_MEDIA_TYPE, RequestConfig, TransportResponse, merge_headers
from .request_options import RequestOptions
from .retry import retry_with_backoff
from .security import validate_base_url
from .timeouts import with_timeout
from .transport import HttpxTransport
from .types import Middleware, RetryPredicate, Transport


def _encode_json_body(body: Any) -> bytes | None:
    if body is None:
        return None
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    elif isinstance(body, Mapping):
        body = dict(body)
    return json.dumps(body).encode("utf-8")


def _resolve_options(options: RequestOptions | None) -> RequestOptions:
    return options or RequestOptions()


class FetchLayerClient:
    """Send requests through middleware, retries, a per-attempt timeout and response classification.

    Configuration is layered: the class defaults below, then constructor
    arguments, then the ``RequestOptions`` given to each call.
    """

    default_timeout = 10.0
    default_retries = 0
    default_retry_delay = 1.0
    default_parse_json = True
    default_headers: Mapping[str, str] = {"Content-Type": JSON_MEDIA_TYPE}

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        retries: int | None = None,
        retry_delay: float | None = None,
        headers: Mapping[str, str] | None = None,
        parse_json: bool | None = None,
        extensions: Mapping[str, Any] | None = None,
        transport: Transport | None = None,
        middleware: list[Middleware] | None = None,
        should_retry: RetryPredicate | None = None,
        allow_http: bool = True,
        base_url_env_var: str = "FETCHLAYER_BASE_URL",
    ) -> None:
        self.base_url = (base_url if base_url is not None else os.getenv(base_url_env_var, "")).rstrip("/")
        if self.base_url:
            try:
                validate_base_url(self.base_url, allow_http=allow_http)
            except ValueError as exc:
                raise FetchLayerValidationError(str(exc), cause=exc) from exc

        defaults = RequestConfig.build(
            timeout=self.default_timeout,
            retries=self.default_retries,
            retry_delay=self.default_retry_delay,
            parse_json=self.default_parse_json,
            headers=dict(self.default_headers),
        )
        self.defaults = defaults.merged(
            RequestOptions(
                timeout=timeout,
                retries=retries,
                retry_delay=retry_delay,
                headers=headers,
                parse_json=parse_json,
                extensions=extensions,
            )
        )
        self.should_retry = should_retry
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._middlewares: list[Middleware] = list(middleware or [])

    async def __aenter__(self) -> "FetchLayerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return tuple(self._middlewares)

    def use(self, middleware: Middleware) -> "FetchLayerClient":
        """Add ``middleware`` as the new outermost layer and return the client."""
        if not callable(middleware):
            raise FetchLayerValidationError("middleware must be callable")
        self._middlewares.append(middleware)
        return self

    def _url(self, path: str) -> str:
        if "\x00" in path:
            raise FetchLayerValidationError("Invalid path characters")
        if not self.base_url:
            return path
        if "://" in path:
            raise FetchLayerValidationError("Full URLs are not allowed in path when base_url is set")
        return self.base_url + path

    def build_config(self, path: str, options: RequestOptions | None = None) -> RequestConfig:
        config = self.defaults.merged(_resolve_options(options))
        return config.model_copy(update={"path": path, "url": self._url(path)})

    async def _send(self, config: RequestConfig) -> Any:
        async def attempt() -> Any:
            response: TransportResponse = await with_timeout(lambda: self._transport(config), config.timeout)
            return classify_response(response, parse_json=config.parse_json)

        return await retry_with_backoff(
            attempt,
            config.retries,
            config.retry_delay,
            should_retry=self.should_retry,
        )

    async def request(self, path: str, options: RequestOptions | None = None) -> Any:
        config = self.build_config(path, options)
        call = compose(self._middlewares, self._send)
        return await call(config)

    async def get(self, path: str, options: RequestOptions | None = None) -> Any:
        return await self.request(path, replace(_resolve_options(options), method="GET"))

    async def delete(self, path: str, options: RequestOptions | None = None) -> Any:
        return await self.request(path, replace(_resolve_options(options), method="DELETE"))

    async def post(self, path: str, body: Any = None, options: RequestOptions | None = None) -> Any:
        return await self._send_json("POST", path, body, options)

    async def put(self, path: str, body: Any = None, options: RequestOptions | None = None) -> Any:
        return await self._send_json("PUT", path, body, options)

    async def patch(self, path: str, body: Any = None, options: RequestOptions | None = None) -> Any:
        return await self._send_json("PATCH", path, body, options)

    async def _send_json(self, method: str, path: str, body: Any, options: RequestOptions | None) -> Any:
        request_options = _resolve_options(options)
        headers = merge_headers({"Content-Type": JSON_MEDIA_TYPE}, request_options.headers)
        return await self.request(
            path,
            replace(
                request_options,
                method=method,
                body=_encode_json_body(body),
                headers=headers,
            ),
        )
