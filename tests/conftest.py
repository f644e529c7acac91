"""Shared fixtures: a scripted relay transport, fake relays and a task registry with one server."""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mcp_chat.core.errors import RelayUpstreamError
from mcp_chat.core.relay_registry import RelayRegistry, get_relay_registry
from mcp_chat.core.sse import DONE
from mcp_chat.core.task_registry import DEFAULT_TASK_ID, TaskRegistry
from mcp_chat.main import app
from mcp_chat.models.api_models import RelayRequest
from mcp_chat.models.common import MCPServerConfig
from mcp_chat.relays.base_relay import BaseRelay

# ---------------------------------------------------------------------------
# Scripted transport for the conversation state machine
# ---------------------------------------------------------------------------

PAUSE = object()


class FakeTransport:
    """Plays back one scripted list of frames per call and records every request.

    A PAUSE entry blocks the stream until `resume()` is called, which lets
    tests stop or switch tasks while a turn is in flight. An exception entry
    is raised at that point of the stream.
    """

    def __init__(self):
        self.requests: List[tuple] = []
        self._scripts: List[List[Any]] = []
        self._resume = asyncio.Event()

    def script(self, *frames):
        self._scripts.append(list(frames))

    def resume(self):
        self._resume.set()

    async def stream(self, provider: str, request: RelayRequest) -> AsyncIterator[Any]:
        self.requests.append((provider, request))
        frames = self._scripts.pop(0) if self._scripts else [DONE]
        for frame in frames:
            if frame is PAUSE:
                await self._resume.wait()
                self._resume.clear()
                continue
            if isinstance(frame, Exception):
                raise frame
            await asyncio.sleep(0)
            yield frame

    @property
    def last_request(self) -> RelayRequest:
        return self.requests[-1][1]


# ---------------------------------------------------------------------------
# Fake relays for the HTTP layer
# ---------------------------------------------------------------------------


class MockRelay(BaseRelay):
    """Relay that streams canned frames and counts upstream calls."""

    def __init__(self, name: str = "openai", frames: Optional[List[Dict[str, Any]]] = None,
                 error: Optional[Exception] = None):
        self.name = name
        self.default_model = "mock-model"
        self.frames = frames or []
        self.error = error
        self.calls: List[Any] = []

    async def open_stream(self, request: RelayRequest):
        self.calls.append(request)
        if self.error:
            raise self.error
        return self._iterate(list(self.frames))

    async def _iterate(self, frames):
        for frame in frames:
            yield frame

    async def stream_events(self, payload: Dict[str, Any]):
        self.calls.append(payload)
        if self.error:
            raise self.error
        return self._iterate(list(self.frames))

    async def complete(self, request: RelayRequest) -> Dict[str, Any]:
        self.calls.append(request)
        if self.error:
            raise self.error
        return {"id": "resp_mock", "output_text": "done"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def registry():
    registry = TaskRegistry()
    registry.add_server(DEFAULT_TASK_ID, MCPServerConfig(label="shop", url="https://shop.example/mcp"))
    return registry


@pytest.fixture
def mock_relay():
    return MockRelay()


@pytest_asyncio.fixture
async def client_factory():
    """Builds an ASGI client whose relay registry holds the given relays."""
    clients = []

    async def _make(*relays: BaseRelay) -> AsyncClient:
        relay_registry = RelayRegistry(relays=list(relays))
        app.dependency_overrides[get_relay_registry] = lambda: relay_registry
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


def upstream_error(message: str = "Rate limit reached", status_code: int = 429) -> RelayUpstreamError:
    return RelayUpstreamError(message, status_code=status_code)
