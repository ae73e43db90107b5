"""Pytest configuration and fixtures for canvas-client tests."""

import asyncio

import pytest
import httpx
import respx
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional
from unittest.mock import AsyncMock, MagicMock

from pydantic import BaseModel

from canvas_client.connection import Connection


BASE_URL = "http://canvas.com"
TOKEN = "1234"


# ============================================================================
# Mock Response Models
# ============================================================================


class MockItem(BaseModel):
    """Mock entity for testing."""
    id: int
    name: str = ""


# ============================================================================
# Mock HTTP Transport
# ============================================================================


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks."""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = list(chunks)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk


class RecordingHandler:
    """
    MockTransport handler that replays queued responses in order and records
    every request it receives.
    """

    def __init__(self, *responses: httpx.Response):
        self.responses: List[httpx.Response] = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)

    @property
    def urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]


class BlockingHandler(RecordingHandler):
    """
    Replays queued responses, then blocks every further request until the
    calling task is cancelled.
    """

    def __init__(self, *responses: httpx.Response):
        super().__init__(*responses)
        self.blocked = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        self.blocked.set()
        await asyncio.Event().wait()
        raise AssertionError("Blocked request was resumed")


def create_connection(
    handler: Callable[[httpx.Request], httpx.Response],
    **kwargs: Any,
) -> Connection:
    """Create a connection whose client uses a MockTransport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return Connection(BASE_URL, TOKEN, client=client, **kwargs)


def json_response(
    status_code: int = 200,
    json_data: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """Create a JSON httpx.Response."""
    return httpx.Response(status_code, json=json_data, headers=headers)


def next_page(url: str) -> Dict[str, str]:
    """Link header pointing at the next page."""
    return {"Link": f'<{url}>; rel="next", <{BASE_URL}/api/v1/first>; rel="first"'}


async def async_iter(items: Iterable[Any]) -> AsyncIterator[Any]:
    for item in items:
        yield item


async def collect(iterator: AsyncIterator[Any]) -> List[Any]:
    return [item async for item in iterator]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def base_url():
    """Default base URL for testing."""
    return BASE_URL


@pytest.fixture
def mock_connection():
    """
    Create a mock Connection for resource client tests.

    ``list`` is an async generator on the real connection, so it is replaced
    with a plain mock; tests set its side effect to ``async_iter``.
    """
    connection = AsyncMock(spec=Connection)
    connection.list = MagicMock(return_value=async_iter([]))
    return connection


# ============================================================================
# respx Fixtures
# ============================================================================


@pytest.fixture
def respx_mock():
    """Create a respx mock router that intercepts every httpx client."""
    with respx.mock(assert_all_called=False) as router:
        yield router
