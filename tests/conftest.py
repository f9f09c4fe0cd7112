"""Shared fakes for the ModelWhiz test suite."""

from __future__ import annotations

from typing import Any

import httpx
import pytest


class FakeApi:
    """Routes ``(method, path)`` to queued canned responses and records requests.

    Each route serves its queue in order; the last entry keeps being served.
    Plain dicts and lists become 200 JSON responses. Unrouted requests get a
    404 with a ``detail`` message, like the real API.
    """

    BASE_URL = "http://testserver/api"
    ORIGIN = "http://testserver"
    # Queue this in place of a response to simulate an unreachable server
    CONNECT_ERROR = object()

    def __init__(self, prefix: str = "/api"):
        self.prefix = prefix
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> FakeApi:
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)

        path = request.url.path
        if path.startswith(self.prefix):
            path = path[len(self.prefix) :]
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not Found"})

        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if item is self.CONNECT_ERROR:
            raise httpx.ConnectError("Connection refused", request=request)
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str | None = None, path: str | None = None) -> list:
        matched = []
        for request in self.requests:
            request_path = request.url.path[len(self.prefix) :]
            if method and request.method != method:
                continue
            if path and request_path != path:
                continue
            matched.append(request)
        return matched


class FakeSleep:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self, on_call=None):
        self.delays: list[float] = []
        self._on_call = on_call

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._on_call is not None:
            self._on_call(len(self.delays))


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def sleep_factory():
    """Build a FakeSleep with an ``on_call(call_count)`` hook."""
    return FakeSleep
