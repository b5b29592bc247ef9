"""Abstract base class for command backends.

A backend receives pass-through commands from the dispatcher and
delivers them to the media player. Keeping it behind an interface lets
the dispatcher be tested without a running VLC, and leaves room for a
different player protocol later.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class CommandBackend(ABC):
    """Abstract interface for forwarding raw commands to a player.

    Implementations own their connection handling entirely: the
    dispatcher only calls :meth:`forward` and never holds a connection
    between commands.

    Example usage::

        backend = VlcBackend(address="127.0.0.1:54322")
        response = await backend.forward(b"pause\\n")
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Human readable ``host:port`` of the player."""
        ...

    @abstractmethod
    async def exchange(self, command: bytes) -> bytes:
        """Perform exactly one request/response round trip.

        Args:
            command: Bytes to send, unmodified.

        Returns:
            The raw response bytes.

        Raises:
            OSError: On connection or transport failures.
            BackendProtocolError: If the player's reply is incomplete.
        """
        ...

    @abstractmethod
    async def forward(self, command: bytes) -> bytes:
        """Deliver a command, retrying as the implementation sees fit.

        Raises:
            BackendUnreachableError: When the command could not be
                delivered at all.
        """
        ...
