"""Per-request overrides for the fetchlayer client."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class RequestOptions:
    method: str | None = None
    headers: Mapping[str, str] | None = None
    body: bytes | None = None
    timeout: float | None = None
    retries: int | None = None
    retry_delay: float | None = None
    parse_json: bool | None = None
    extensions: Mapping[str, Any] | None = None

    def overrides(self) -> dict[str, Any]:
        """Return the explicitly set fields, headers excluded."""
        values: dict[str, Any] = {}
        for item in fields(self):
            if item.name == "headers":
                continue
            value = getattr(self, item.name)
            if value is not None:
                values[item.name] = value
        return values
