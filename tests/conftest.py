from __future__ import annotations

import asyncio
import json
from typing import Callable, Iterable, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from slackpipe.config import ChannelTarget, Settings
from slackpipe.slack import OutgoingMessage

WEBHOOK_URL = "https://hooks.slack.test/services/T000/B000/XXXX"


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class FakeWebhook:
    """Scripted webhook endpoint for httpx.MockTransport."""

    def __init__(
        self,
        responses: Iterable[httpx.Response | Exception] = (),
        clock: Optional[FakeClock] = None,
    ) -> None:
        self.responses = list(responses)
        self.clock = clock
        self.requests: list[httpx.Request] = []
        self.payloads: list[dict] = []
        self.times: list[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.clock is not None:
            self.times.append(self.clock.now)

        form = parse_qs(request.content.decode("utf-8"))
        payload = json.loads(form["payload"][0])

        response = self.responses.pop(0) if self.responses else httpx.Response(200, text="ok")
        if isinstance(response, Exception):
            raise response
        if response.is_success:
            self.payloads.append(payload)
        return response

    @property
    def texts(self) -> list[str]:
        return [payload["text"] for payload in self.payloads]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class ListReader:
    """Line reader over a fixed list of raw lines."""

    def __init__(self, lines: Iterable[bytes], error: Optional[Exception] = None) -> None:
        self.lines = list(lines)
        self.error = error

    async def readline(self) -> bytes:
        await asyncio.sleep(0)
        if self.lines:
            return self.lines.pop(0)
        if self.error is not None:
            raise self.error
        return b""


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def target() -> ChannelTarget:
    return ChannelTarget(name="ops", channel="#ops", webhook_url=WEBHOOK_URL)


@pytest.fixture
def base_message() -> OutgoingMessage:
    return OutgoingMessage(channel="#ops", username="deploy@build01", icon=":robot_face:")


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {"echo": False, "size_limit": 4000, "rate_limit_window": 2.0}
        values.update(overrides)
        return Settings(**values)

    return _make
