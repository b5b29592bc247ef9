"""vlc-control -- Text command relay for a VLC media player on a Raspberry Pi.

Accepts short commands over TCP (one per line) and UDP (one per datagram),
runs a small set of allow-listed privileged actions locally (restart VLC,
shutdown, reboot) and forwards everything else to VLC's prompt-based
``rc`` interface.
"""

__version__ = "0.1.0"
