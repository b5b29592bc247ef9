"""TCP listener: one command per line, many lines per connection.

Each connection runs in its own task and dispatches its lines strictly
in order. A failing command is logged and the connection keeps going; a
failing connection never affects the others.
"""

from __future__ import annotations

import asyncio
import logging

from vlc_control.dispatcher import CommandDispatcher
from vlc_control.domain.models import parse_address
from vlc_control.errors import DispatchError

logger = logging.getLogger(__name__)


class TcpListener:
    """Accepts TCP clients and feeds their lines to the dispatcher.

    Usage::

        listener = TcpListener("0.0.0.0:55550", dispatcher)
        await listener.start()
        await listener.serve_forever()
    """

    def __init__(self, address: str, dispatcher: CommandDispatcher) -> None:
        self._host, self._port = parse_address(address)
        self._dispatcher = dispatcher
        self._server: asyncio.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def address(self) -> tuple[str, int]:
        """The bound ``(host, port)``; the real port when 0 was requested."""
        if self._server is None or not self._server.sockets:
            return self._host, self._port
        sockname = self._server.sockets[0].getsockname()
        return sockname[0], sockname[1]

    async def start(self) -> None:
        """Bind and start accepting connections.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._server = await asyncio.start_server(
            self._handle_client, host=self._host, port=self._port
        )
        logger.info("TCP server listening on %s:%d", *self.address)

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        assert self._server is not None
        await self._server.serve_forever()

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            for writer in list(self._writers):
                writer.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("TCP server closed")

    async def _handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        peer = writer.get_extra_info("peername")
        logger.info("Got inbound TCP connection from %s", peer)
        self._writers.add(writer)
        try:
            await self._read_commands(reader, peer)
            logger.info("TCP client %s disconnected cleanly", peer)
        except (OSError, ValueError) as e:
            # ValueError: line longer than the stream buffer limit
            logger.error("Error handling TCP client %s: %s", peer, e)
        except Exception:
            logger.exception("Unexpected error handling TCP client %s", peer)
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _read_commands(self, reader: asyncio.StreamReader, peer: object) -> None:
        while True:
            line = await reader.readline()
            if not line:
                return
            logger.debug("Received TCP message from %s: %s", peer, line.decode("utf-8", "replace").strip())
            try:
                await self._dispatcher.dispatch(line)
            except DispatchError as e:
                logger.warning("Command from %s rejected: %s", peer, e)
