"""Local privileged actions (VLC restart, shutdown, reboot)."""

from vlc_control.actions.executor import (
    REBOOT,
    RESTART_VLC,
    SHUTDOWN,
    LocalAction,
    LocalActionExecutor,
    default_actions,
)

__all__ = [
    "REBOOT",
    "RESTART_VLC",
    "SHUTDOWN",
    "LocalAction",
    "LocalActionExecutor",
    "default_actions",
]
