"""Command-line interface for vlc-control.

Provides the main entry point for running the relay and a small client
for sending single commands to a running relay.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_LEVELS = ("ERROR", "WARNING", "INFO", "DEBUG")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="vlc-control",
        description="A VLC remote control server",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/vlc-control.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-l", "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (VLC_CONTROL_LOG takes precedence when set)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the TCP/UDP command relay")
    serve_parser.add_argument("--vlc-address", type=str, default=None, help="VLC rc host:port")
    serve_parser.add_argument("--tcp-address", type=str, default=None, help="TCP listen host:port")
    serve_parser.add_argument("--udp-address", type=str, default=None, help="UDP listen host:port")
    serve_parser.add_argument(
        "--api", action="store_true", help="Also serve the HTTP control API",
    )

    send_parser = subparsers.add_parser("send", help="Send one command to a running relay")
    send_parser.add_argument("text", type=str, help="Command to send, e.g. 'pause'")
    send_parser.add_argument(
        "--transport", choices=("tcp", "udp", "http"), default="tcp",
        help="How to reach the relay (default: tcp)",
    )
    send_parser.add_argument(
        "--host", type=str, default="127.0.0.1",
        help="Relay host (ports are taken from the configuration)",
    )

    return parser.parse_args(argv)


def apply_overrides(settings, args: argparse.Namespace) -> None:
    """Copy command-line overrides onto ``settings``."""
    from vlc_control.config.settings import LOG_LEVEL_ENV_VAR

    if not os.environ.get(LOG_LEVEL_ENV_VAR):
        if args.log_level:
            settings.logging.level = args.log_level
        if args.verbose:
            settings.logging.level = "DEBUG"

    if args.command == "serve":
        if args.vlc_address:
            settings.vlc.address = args.vlc_address
        if args.tcp_address:
            settings.listener.tcp_address = args.tcp_address
        if args.udp_address:
            settings.listener.udp_address = args.udp_address
        if args.api:
            settings.api.enabled = True


async def _send_tcp(host: str, port: int, data: bytes) -> None:
    _, writer = await asyncio.open_connection(host, port)
    try:
        writer.write(data)
        await writer.drain()
    finally:
        writer.close()
        await writer.wait_closed()


def _send_udp(host: str, port: int, data: bytes) -> None:
    family, type_, proto, _, sockaddr = socket.getaddrinfo(
        host, port, type=socket.SOCK_DGRAM,
    )[0]
    with socket.socket(family, type_, proto) as sock:
        sock.sendto(data, sockaddr)


async def _send_http(host: str, port: int, text: str) -> dict:
    import httpx

    async with httpx.AsyncClient(base_url=f"http://{host}:{port}", timeout=10.0) as client:
        resp = await client.post("/command", json={"command": text})
        resp.raise_for_status()
        return resp.json()


def _send(settings, args: argparse.Namespace) -> int:
    """Send a single command and report the outcome."""
    from vlc_control.domain.models import parse_address

    data = args.text.encode("utf-8") + b"\n"
    if args.transport == "tcp":
        _, port = parse_address(settings.listener.tcp_address)
        asyncio.run(_send_tcp(args.host, port, data))
        print(f"Sent {args.text!r} via TCP to {args.host}:{port}")
    elif args.transport == "udp":
        _, port = parse_address(settings.listener.udp_address)
        _send_udp(args.host, port, data)
        print(f"Sent {args.text!r} via UDP to {args.host}:{port}")
    else:
        import httpx

        try:
            result = asyncio.run(_send_http(args.host, settings.api.port, args.text))
        except httpx.HTTPStatusError as e:
            print(f"Rejected ({e.response.status_code}): {e.response.json().get('detail')}")
            return 1
        except httpx.HTTPError as e:
            print(f"Could not send command: {e}", file=sys.stderr)
            return 1
        print(f"Sent {args.text!r} via HTTP: {result['route']}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the vlc-control CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from vlc_control.config.settings import load_settings
    from vlc_control.utils.logging import setup_logging

    settings = load_settings(args.config)
    apply_overrides(settings, args)
    setup_logging(settings.logging)

    if args.command == "serve":
        from vlc_control.server.runner import run_relay

        try:
            asyncio.run(run_relay(settings))
        except (OSError, ValueError) as e:
            logger.error("Relay stopped: %s", e)
            sys.exit(1)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")

    elif args.command == "send":
        try:
            sys.exit(_send(settings, args))
        except OSError as e:
            print(f"Could not send command: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
