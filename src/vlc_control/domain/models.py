"""Core domain models for the vlc-control relay.

Fixed limits, the command allow-list, the backend retry policy and the
possible outcomes of a dispatched command. Everything here is immutable
and shared read-only between sessions.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

# Commands longer than this are rejected before anything else happens
MAX_COMMAND_SIZE = 128
# Receive buffer per datagram; longer datagrams are truncated
DATAGRAM_BUFFER_SIZE = 1024
# Commands starting with this prefix are handled locally, never forwarded
PRIVILEGED_PREFIX = "pi_"
# VLC rc interface ends both its greeting and every reply with this byte
VLC_PROMPT = b">"

ALLOWED_COMMANDS: tuple[str, ...] = (
    "play",
    "pause",
    "stop",
    "next",
    "prev",
    "playlist",
    "frame",
    "pi_restart_vlc",
    "pi_shutdown",
    "pi_reboot",
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CommandRoute(str, enum.Enum):
    """Where a successfully dispatched command ended up."""

    LOCAL_ACTION = "local_action"
    FORWARDED = "forwarded"


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class AllowList(BaseModel):
    """Immutable set of command names clients may send.

    Only the ``pi_`` entries actually gate anything: pass-through commands
    are forwarded whether or not they are listed.
    """

    model_config = ConfigDict(frozen=True)

    commands: frozenset[str] = Field(
        default=frozenset(ALLOWED_COMMANDS),
        description="Permitted command names",
    )

    def __contains__(self, command: object) -> bool:
        return command in self.commands

    def names(self) -> list[str]:
        """Sorted command names."""
        return sorted(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    @staticmethod
    def is_privileged(command: str) -> bool:
        """Whether ``command`` looks like a local action request."""
        return command.startswith(PRIVILEGED_PREFIX)

    def privileged_commands(self) -> list[str]:
        return [c for c in self.names() if self.is_privileged(c)]


class RetryPolicy(BaseModel):
    """Bounded exponential backoff for backend exchanges."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Total attempts, first one included")
    initial_delay: float = Field(default=0.1, ge=0, description="Seconds before the second attempt")
    multiplier: float = Field(default=2.0, ge=1, description="Delay growth factor per failure")

    def delays(self) -> list[float]:
        """Waits inserted between consecutive attempts.

        With the defaults this is ``[0.1, 0.2]``: nothing is waited after
        the final attempt.
        """
        delays = []
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            delays.append(delay)
            delay *= self.multiplier
        return delays


DEFAULT_ALLOW_LIST = AllowList()
DEFAULT_RETRY_POLICY = RetryPolicy()


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` string into its parts.

    IPv6 hosts must be bracketed (``[::1]:54322``).

    Raises:
        ValueError: If the string has no port or the port is not a valid
            TCP/UDP port number.
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Address must be host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid port in address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range in address {address!r}")
    return host, port


def format_address(host: str, port: int) -> str:
    """Inverse of :func:`parse_address`."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
