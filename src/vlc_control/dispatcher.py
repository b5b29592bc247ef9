"""Command dispatcher.

Every command from every transport goes through :meth:`CommandDispatcher.dispatch`:

1. size check on the raw bytes
2. UTF-8 decode, surrounding whitespace trimmed
3. ``pi_`` commands: allow-listed ones run locally, the rest are refused
4. everything else is forwarded to the backend, bytes unchanged

A command takes exactly one of these paths.
"""

from __future__ import annotations

import logging

from vlc_control.actions.executor import LocalActionExecutor
from vlc_control.backend.base import CommandBackend
from vlc_control.domain.models import (
    DEFAULT_ALLOW_LIST,
    MAX_COMMAND_SIZE,
    AllowList,
    CommandRoute,
)
from vlc_control.errors import (
    CommandTooLargeError,
    InvalidEncodingError,
    UnauthorizedCommandError,
)

logger = logging.getLogger(__name__)

# Unicode White_Space only. str.strip() would also drop the \x1c-\x1f separators.
COMMAND_WHITESPACE = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)


class CommandDispatcher:
    """Validates, classifies and routes single commands.

    Stateless apart from its collaborators, so one instance is shared by
    all listeners and sessions.
    """

    def __init__(
        self,
        backend: CommandBackend,
        executor: LocalActionExecutor,
        allow_list: AllowList = DEFAULT_ALLOW_LIST,
        max_size: int = MAX_COMMAND_SIZE,
    ) -> None:
        self._backend = backend
        self._executor = executor
        self._allow_list = allow_list
        self._max_size = max_size

    @property
    def allow_list(self) -> AllowList:
        return self._allow_list

    @property
    def backend(self) -> CommandBackend:
        return self._backend

    async def dispatch(self, data: bytes) -> CommandRoute:
        """Handle one command unit.

        Args:
            data: Raw bytes as received, including any line terminator.

        Returns:
            The route the command took.

        Raises:
            CommandTooLargeError: ``data`` is longer than the size limit.
            InvalidEncodingError: ``data`` is not UTF-8.
            UnauthorizedCommandError: ``pi_`` command not on the allow-list.
            BackendUnreachableError: Forwarding failed on every attempt.
        """
        if len(data) > self._max_size:
            raise CommandTooLargeError(len(data), self._max_size)

        try:
            command = data.decode("utf-8").strip(COMMAND_WHITESPACE)
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(f"Command is not valid UTF-8: {e}") from e

        if self._allow_list.is_privileged(command):
            if command not in self._allow_list:
                logger.warning("Blocked unauthorized system command: %s", command)
                raise UnauthorizedCommandError(command)
            await self._executor.execute(command)
            return CommandRoute.LOCAL_ACTION

        logger.debug("Forwarding command to VLC: %s", command)
        await self._backend.forward(data)
        return CommandRoute.FORWARDED
