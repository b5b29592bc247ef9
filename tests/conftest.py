"""Shared test fixtures for the vlc-control test suite.

Provides mock collaborators for the dispatcher, a dispatcher wired to
them, and a tiny in-process stand-in for VLC's rc interface.
"""

from __future__ import annotations

import asyncio
import socket
from unittest.mock import AsyncMock

import pytest

from vlc_control.actions.executor import LocalActionExecutor
from vlc_control.backend.base import CommandBackend
from vlc_control.dispatcher import CommandDispatcher


# ---------------------------------------------------------------------------
# Fake VLC rc server
# ---------------------------------------------------------------------------


class FakeVlcServer:
    """Speaks just enough of VLC's rc protocol for the backend tests.

    Sends ``greeting`` on connect, reads one chunk of command bytes and
    answers with ``reply``. The first ``drop_first`` connections are
    closed straight away without a prompt. With ``silent=True`` it never
    prompts at all.
    """

    def __init__(
        self,
        greeting: bytes = b">",
        reply: bytes = b"OK>",
        drop_first: int = 0,
        silent: bool = False,
    ) -> None:
        self.greeting = greeting
        self.reply = reply
        self.drop_first = drop_first
        self.silent = silent
        self.connections = 0
        self.received: list[bytes] = []
        self._server: asyncio.Server | None = None

    @property
    def address(self) -> str:
        assert self._server is not None
        port = self._server.sockets[0].getsockname()[1]
        return f"127.0.0.1:{port}"

    async def __aenter__(self) -> FakeVlcServer:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self

    async def __aexit__(self, *exc: object) -> None:
        assert self._server is not None
        self._server.close()
        await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        try:
            if self.connections <= self.drop_first:
                return
            if self.silent:
                await reader.read()
                return
            writer.write(self.greeting)
            await writer.drain()
            data = await reader.read(1024)
            if not data:
                return
            self.received.append(data)
            writer.write(self.reply)
            await writer.drain()
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass


def unused_port() -> int:
    """A TCP port on localhost that nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def wait_for_calls(mock: AsyncMock, count: int, timeout: float = 2.0) -> None:
    """Poll until ``mock`` has been awaited ``count`` times."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while mock.await_count < count:
        if loop.time() > deadline:
            raise AssertionError(
                f"expected {count} awaits, got {mock.await_count}"
            )
        await asyncio.sleep(0.01)


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_vlc_server() -> type[FakeVlcServer]:
    return FakeVlcServer


@pytest.fixture
def mock_backend() -> AsyncMock:
    """A mock CommandBackend that accepts everything."""
    backend = AsyncMock(spec=CommandBackend)
    backend.address = "127.0.0.1:54322"
    backend.forward.return_value = b"OK>"
    return backend


@pytest.fixture
def mock_executor() -> AsyncMock:
    """A mock LocalActionExecutor whose actions always succeed."""
    executor = AsyncMock(spec=LocalActionExecutor)
    executor.execute.return_value = True
    return executor


@pytest.fixture
def dispatcher(mock_backend: AsyncMock, mock_executor: AsyncMock) -> CommandDispatcher:
    """A CommandDispatcher wired to the mock backend and executor."""
    return CommandDispatcher(backend=mock_backend, executor=mock_executor)


@pytest.fixture
def mock_dispatcher() -> AsyncMock:
    """A mock CommandDispatcher for listener tests."""
    dispatcher = AsyncMock(spec=CommandDispatcher)
    return dispatcher


@pytest.fixture
def free_port() -> int:
    return unused_port()


@pytest.fixture
def wait_for() -> object:
    """The :func:`wait_for_calls` helper, for tests that need to poll."""
    return wait_for_calls
