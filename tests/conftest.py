# tests/conftest.py
import asyncio
from collections.abc import Callable, Iterable

import httpx
import pytest

from hookwire.config import LifecycleSettings
from hookwire.engine import LifecycleEngine

API_URL = "https://api.example.com/login"


class RecordingTransport:
    """In-memory transport that records requests and answers through a handler."""

    def __init__(
        self,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        *,
        delay: float = 0.0,
    ):
        self.handler = handler or (
            lambda request: httpx.Response(200, json={"status": "success"})
        )
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self.closed = False

    async def send(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.handler(request)
        response.request = request
        return response

    async def aclose(self) -> None:
        self.closed = True


def respond_with(
    responses: Iterable[httpx.Response],
) -> Callable[[httpx.Request], httpx.Response]:
    """Handler returning the given responses in order."""
    queue = iter(responses)
    return lambda request: next(queue)


@pytest.fixture
def settings():
    """Fixture for LifecycleSettings with a recognizable logging tag."""
    return LifecycleSettings(log_name="test-api")


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def engine(settings, transport):
    """Fixture for a LifecycleEngine that talks to the recording transport."""
    return LifecycleEngine(settings=settings, transport=transport)


@pytest.fixture
def events():
    """Ordered record of hook invocations."""
    return []


@pytest.fixture
def recorder(events):
    """Factory for async hooks that append their name to ``events``."""

    def make(name: str, result=None):
        async def hook(descriptor):
            events.append(name)
            return result

        return hook

    return make
