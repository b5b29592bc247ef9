"""UDP listener: one command per datagram.

Datagrams are read into a fixed 1024-byte window; anything past that is
dropped (the command is then almost certainly over the size limit and
gets rejected anyway). Every datagram is dispatched in its own task, so
there is no ordering between datagrams.
"""

from __future__ import annotations

import asyncio
import logging

from vlc_control.dispatcher import CommandDispatcher
from vlc_control.domain.models import DATAGRAM_BUFFER_SIZE, parse_address
from vlc_control.errors import DispatchError

logger = logging.getLogger(__name__)


class _CommandDatagramProtocol(asyncio.DatagramProtocol):
    def __init__(self, listener: UdpListener) -> None:
        self._listener = listener

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self._listener._spawn(data[:DATAGRAM_BUFFER_SIZE], addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning("UDP socket error: %s", exc)

    def connection_lost(self, exc: Exception | None) -> None:
        self._listener._on_connection_lost(exc)


class UdpListener:
    """Receives datagrams and dispatches each one as a command.

    Usage::

        listener = UdpListener("0.0.0.0:55551", dispatcher)
        await listener.start()
        await listener.serve_forever()
    """

    def __init__(self, address: str, dispatcher: CommandDispatcher) -> None:
        self._host, self._port = parse_address(address)
        self._dispatcher = dispatcher
        self._transport: asyncio.DatagramTransport | None = None
        self._closed: asyncio.Future[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def address(self) -> tuple[str, int]:
        if self._transport is None:
            return self._host, self._port
        sockname = self._transport.get_extra_info("sockname")
        return sockname[0], sockname[1]

    async def start(self) -> None:
        """Bind the socket.

        Raises:
            OSError: If the address cannot be bound.
        """
        loop = asyncio.get_running_loop()
        self._closed = loop.create_future()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _CommandDatagramProtocol(self),
            local_addr=(self._host, self._port),
        )
        self._transport = transport
        logger.info("UDP server listening on %s:%d", *self.address)

    async def serve_forever(self) -> None:
        """Wait until the socket is closed; re-raises a socket failure."""
        if self._transport is None:
            await self.start()
        assert self._closed is not None
        await self._closed

    async def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        # In-flight commands may be stuck on a backend that never prompts
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("UDP server closed")

    async def wait_idle(self) -> None:
        """Wait for all in-flight datagram tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, data: bytes, addr: tuple) -> None:
        task = asyncio.get_running_loop().create_task(self._handle_datagram(data, addr))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_connection_lost(self, exc: Exception | None) -> None:
        if self._closed is None or self._closed.done():
            return
        if exc is None:
            self._closed.set_result(None)
        else:
            self._closed.set_exception(exc)

    async def _handle_datagram(self, data: bytes, addr: tuple) -> None:
        logger.debug("Got UDP datagram from %s: %s", addr, data.decode("utf-8", "replace").strip())
        try:
            await self._dispatcher.dispatch(data)
        except DispatchError as e:
            logger.warning("Command from %s rejected: %s", addr, e)
        except Exception:
            logger.exception("Error handling UDP datagram from %s", addr)
