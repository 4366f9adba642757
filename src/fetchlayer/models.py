"""Typed request configuration and transport response records."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import FetchLayerValidationError
from .request_options import RequestOptions

JSON_MEDIA_TYPE = "application/json"


def merge_headers(base: Mapping[str, str], override: Mapping[str, str] | None) -> dict[str, str]:
    """Merge header maps key by key; names are compared case-insensitively."""
    merged = {str(key): str(value) for key, value in base.items()}
    if not override:
        return merged
    for key, value in override.items():
        name = str(key)
        for existing in [k for k in merged if k.lower() == name.lower()]:
            del merged[existing]
        merged[name] = str(value)
    return merged


class FetchLayerModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class RequestConfig(FetchLayerModel):
    """Fully merged configuration for a single request."""

    path: str = ""
    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=lambda: {"Content-Type": JSON_MEDIA_TYPE})
    body: bytes | None = None
    timeout: float = Field(default=10.0, gt=0)
    retries: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)
    parse_json: bool = True
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("method must be a non-empty string")
        return value.strip().upper()

    @classmethod
    def build(cls, **values: Any) -> "RequestConfig":
        try:
            return cls(**values)
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
            )
            raise FetchLayerValidationError(f"invalid request configuration ({errors})", cause=exc) from exc

    def merged(self, options: RequestOptions | None) -> "RequestConfig":
        """Layer ``options`` over this configuration.

        Headers are merged key by key, every other field set on ``options``
        replaces the current value outright.
        """
        if options is None:
            return self
        values = self.model_dump()
        values.update(options.overrides())
        values["headers"] = merge_headers(self.headers, options.headers)
        if options.extensions is not None:
            values["extensions"] = dict(options.extensions)
        return self.build(**values)

    def with_headers(self, headers: Mapping[str, str]) -> "RequestConfig":
        return self.model_copy(update={"headers": merge_headers(self.headers, headers)})

    def with_extensions(self, **extensions: Any) -> "RequestConfig":
        return self.model_copy(update={"extensions": {**self.extensions, **extensions}})

    def cache_key(self) -> str:
        payload = self.model_dump(exclude={"body"})
        body = self.body.hex() if self.body is not None else None
        return json.dumps({**payload, "body": body}, sort_keys=True, default=repr)


@dataclass(frozen=True)
class TransportResponse:
    """Raw status, headers and body returned by a transport."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    @property
    def content_type(self) -> str:
        return (self.header("content-type") or "").lower()

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def json(self) -> Any:
        return json.loads(self.body)
