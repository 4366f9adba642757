from __future__ import annotations

import json
from typing import Any

import pytest

from fetchlayer.models import RequestConfig, TransportResponse


def json_response(payload: Any, status_code: int = 200) -> TransportResponse:
    return TransportResponse(
        status_code=status_code,
        headers={"content-type": "application/json"},
        body=json.dumps(payload).encode(),
    )


class ScriptedTransport:
    """Replays a list of outcomes: responses are returned, exceptions raised."""

    def __init__(self, outcomes: list[TransportResponse | Exception]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[RequestConfig] = []
        self.closed = False

    async def __call__(self, config: RequestConfig) -> TransportResponse:
        self.calls.append(config)
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted():
    return ScriptedTransport


@pytest.fixture
def make_json_response():
    return json_response
