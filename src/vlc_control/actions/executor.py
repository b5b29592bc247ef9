"""Privileged local actions triggered by ``pi_`` commands.

Each action is an external program (systemctl, shutdown) run to
completion. The call blocks, so it is pushed onto the event loop's
default thread pool; other sessions keep being served while e.g. VLC
restarts.

Outcomes are only logged. ``execute`` never raises for a failed action.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from typing import Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from vlc_control.errors import LocalActionError

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], int]

RESTART_VLC = "pi_restart_vlc"
SHUTDOWN = "pi_shutdown"
REBOOT = "pi_reboot"


class LocalAction(BaseModel):
    """An external program bound to a privileged command name."""

    model_config = ConfigDict(frozen=True)

    name: str
    argv: tuple[str, ...] = Field(min_length=1)
    description: str
    announce_level: int = logging.INFO
    failure_level: int = logging.WARNING


def default_actions(
    restart_vlc: Sequence[str] = ("systemctl", "--user", "restart", "vlc-loader.service"),
    shutdown: Sequence[str] = ("sudo", "shutdown", "-h", "now"),
    reboot: Sequence[str] = ("sudo", "shutdown", "-r", "now"),
) -> dict[str, LocalAction]:
    """Build the name -> action table, optionally with custom argv."""
    return {
        RESTART_VLC: LocalAction(
            name=RESTART_VLC, argv=tuple(restart_vlc), description="VLC restart",
        ),
        SHUTDOWN: LocalAction(
            name=SHUTDOWN, argv=tuple(shutdown), description="Shutdown",
            announce_level=logging.WARNING, failure_level=logging.ERROR,
        ),
        REBOOT: LocalAction(
            name=REBOOT, argv=tuple(reboot), description="Reboot",
            announce_level=logging.WARNING, failure_level=logging.ERROR,
        ),
    }


def run_command(argv: Sequence[str]) -> int:
    """Run ``argv`` to completion and return its exit code."""
    completed = subprocess.run(list(argv), check=False)
    return completed.returncode


class LocalActionExecutor:
    """Runs the external program behind a privileged command.

    Usage::

        executor = LocalActionExecutor()
        ok = await executor.execute("pi_restart_vlc")
    """

    def __init__(
        self,
        actions: dict[str, LocalAction] | None = None,
        runner: Runner = run_command,
    ) -> None:
        self._actions = actions if actions is not None else default_actions()
        self._runner = runner

    @property
    def action_names(self) -> list[str]:
        return sorted(self._actions)

    async def execute(self, name: str) -> bool:
        """Run the action registered under ``name``.

        Returns:
            True if the program exited with status 0, False otherwise
            (including unknown names and programs that fail to start).
        """
        try:
            await self._run(name)
        except LocalActionError as e:
            action = self._actions.get(name)
            level = action.failure_level if action else logging.ERROR
            logger.log(level, "%s (exit_code=%s)", e, e.exit_code)
            return False
        return True

    async def _run(self, name: str) -> None:
        action = self._actions.get(name)
        if action is None:
            raise LocalActionError(f"No local action registered for {name!r}", action=name)

        logger.log(action.announce_level, "Executing %s command", action.description)
        loop = asyncio.get_running_loop()
        try:
            exit_code = await loop.run_in_executor(None, self._runner, action.argv)
        except OSError as e:
            raise LocalActionError(
                f"{action.description} command could not be started: {e}", action=name,
            ) from e

        if exit_code != 0:
            raise LocalActionError(
                f"{action.description} command failed", action=name, exit_code=exit_code,
            )
        logger.info("%s command completed successfully", action.description)
