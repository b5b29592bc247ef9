"""Network listeners feeding the command dispatcher.

Public API:
    TcpListener -- one command per line
    UdpListener -- one command per datagram
    run_relay -- run all listeners from a Settings object
"""

from vlc_control.server.runner import build_dispatcher, run_relay
from vlc_control.server.tcp import TcpListener
from vlc_control.server.udp import UdpListener

__all__ = ["TcpListener", "UdpListener", "build_dispatcher", "run_relay"]
