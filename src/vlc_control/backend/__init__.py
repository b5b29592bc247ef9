"""Backend module for vlc-control.

Delivers pass-through commands to the media player.

Public API:
    CommandBackend -- Abstract base class
    VlcBackend -- VLC rc interface backend with retry
"""

from vlc_control.backend.base import CommandBackend

__all__ = ["CommandBackend", "VlcBackend"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations."""
    if name == "VlcBackend":
        from vlc_control.backend.vlc import VlcBackend
        return VlcBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
