"""VLC ``rc`` interface backend.

VLC started with ``--intf rc --rc-host 127.0.0.1:54322`` speaks a plain
text protocol: it prints a ``>`` prompt when ready, reads one command
line, prints the reply and a new ``>``. Each forwarded command gets its
own connection::

    connect -> read through '>' -> write command -> read through '>' -> close

The whole sequence is retried with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from vlc_control.backend.base import CommandBackend
from vlc_control.domain.models import (
    DEFAULT_RETRY_POLICY,
    VLC_PROMPT,
    RetryPolicy,
    parse_address,
)
from vlc_control.errors import BackendProtocolError, BackendUnreachableError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class VlcBackend(CommandBackend):
    """Forwards commands to VLC over short-lived TCP connections.

    Args:
        address: ``host:port`` of VLC's rc interface.
        prompt: Delimiter byte ending the greeting and every reply.
        retry: Attempt count and backoff schedule.
        read_timeout: Seconds to wait for each prompt. ``None`` waits
            forever, so a server that accepts but never prompts stalls
            the attempt.
        sleep: Coroutine used for backoff waits (swapped out in tests).
    """

    def __init__(
        self,
        address: str = "127.0.0.1:54322",
        prompt: bytes = VLC_PROMPT,
        retry: RetryPolicy = DEFAULT_RETRY_POLICY,
        read_timeout: float | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        if len(prompt) != 1:
            raise ValueError(f"Prompt must be a single byte, got {prompt!r}")
        self._address = address
        self._host, self._port = parse_address(address)
        self._prompt = prompt
        self._retry = retry
        self._read_timeout = read_timeout
        self._sleep = sleep

    @property
    def address(self) -> str:
        return self._address

    @property
    def retry(self) -> RetryPolicy:
        return self._retry

    async def forward(self, command: bytes) -> bytes:
        """Send ``command`` to VLC, retrying failed exchanges.

        Raises:
            BackendUnreachableError: After the last attempt fails. The
                final underlying error is chained as ``__cause__``.
        """
        max_attempts = self._retry.max_attempts
        delays = self._retry.delays()

        for attempt in range(1, max_attempts + 1):
            try:
                return await self.exchange(command)
            except (OSError, asyncio.TimeoutError, BackendProtocolError) as e:
                if attempt < max_attempts:
                    delay = delays[attempt - 1]
                    logger.warning(
                        "VLC connection failed, retrying (attempt=%d error=%s delay_ms=%d)",
                        attempt, e, round(delay * 1000),
                    )
                    await self._sleep(delay)
                    continue
                logger.error(
                    "VLC connection failed permanently (attempts=%d error=%s)",
                    max_attempts, e,
                )
                raise BackendUnreachableError(
                    f"VLC at {self._address} unreachable after {max_attempts} attempts: {e}",
                    address=self._address,
                    attempts=max_attempts,
                ) from e
        # max_attempts >= 1, the loop always returns or raises
        raise AssertionError("unreachable")

    async def exchange(self, command: bytes) -> bytes:
        """One connect/prompt/command/reply round trip on a fresh connection."""
        reader, writer = await asyncio.open_connection(self._host, self._port)
        logger.debug("Connected to VLC at %s", self._address)
        try:
            await self._read_prompt(reader)
            logger.debug("Read VLC initial prompt")

            writer.write(command)
            await writer.drain()
            logger.debug("Sent command to VLC: %s", command.decode("utf-8", "replace").strip())

            response = await self._read_prompt(reader)
            logger.debug("VLC response received: %s", response.decode("utf-8", "replace").strip())
            return response
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _read_prompt(self, reader: asyncio.StreamReader) -> bytes:
        """Read up to and including the next prompt byte."""
        try:
            if self._read_timeout is None:
                return await reader.readuntil(self._prompt)
            return await asyncio.wait_for(
                reader.readuntil(self._prompt), timeout=self._read_timeout
            )
        except asyncio.IncompleteReadError as e:
            raise BackendProtocolError(
                f"VLC closed the connection before prompt {self._prompt!r} "
                f"({len(e.partial)} bytes read)"
            ) from e
        except asyncio.LimitOverrunError as e:
            raise BackendProtocolError(
                f"VLC reply exceeded the read buffer without a prompt: {e}"
            ) from e
        except asyncio.TimeoutError as e:
            raise BackendProtocolError(
                f"No prompt from VLC within {self._read_timeout}s"
            ) from e
