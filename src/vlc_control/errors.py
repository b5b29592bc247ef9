"""Exception hierarchy for vlc-control.

``DispatchError`` subclasses are the ways a single command can be refused
or fail; listeners log them and keep the session going. Everything else
derives from ``VlcControlError`` so callers can catch the package as a
whole.
"""

from __future__ import annotations


class VlcControlError(Exception):
    """Base class for all vlc-control errors."""


class DispatchError(VlcControlError):
    """A command was rejected or could not be delivered."""


class CommandTooLargeError(DispatchError):
    """Raised when a command exceeds the size limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Command too large: {size} bytes (max {limit})")
        self.size = size
        self.limit = limit


class InvalidEncodingError(DispatchError):
    """Raised when command bytes are not valid UTF-8."""


class UnauthorizedCommandError(DispatchError):
    """Raised for a ``pi_`` command that is not on the allow-list."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Unauthorized system command: {command}")
        self.command = command


class BackendUnreachableError(DispatchError):
    """Raised when every attempt to reach the backend failed."""

    def __init__(self, message: str, address: str = "", attempts: int = 0) -> None:
        super().__init__(message)
        self.address = address
        self.attempts = attempts


class BackendProtocolError(VlcControlError):
    """Raised when one backend exchange does not complete."""


class LocalActionError(VlcControlError):
    """Raised when a privileged local action fails or cannot start."""

    def __init__(self, message: str, action: str = "", exit_code: int | None = None) -> None:
        super().__init__(message)
        self.action = action
        self.exit_code = exit_code
