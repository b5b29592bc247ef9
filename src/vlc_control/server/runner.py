"""Wires the relay together and runs all listeners in one event loop."""

from __future__ import annotations

import asyncio
import logging

from vlc_control.actions.executor import LocalActionExecutor, default_actions
from vlc_control.backend.vlc import VlcBackend
from vlc_control.config.settings import Settings
from vlc_control.dispatcher import CommandDispatcher
from vlc_control.server.tcp import TcpListener
from vlc_control.server.udp import UdpListener

logger = logging.getLogger(__name__)


def build_dispatcher(settings: Settings) -> CommandDispatcher:
    """Create the backend, executor and dispatcher described by ``settings``."""
    backend = VlcBackend(
        address=settings.vlc.address,
        prompt=settings.vlc.prompt.encode("utf-8"),
        read_timeout=settings.vlc.read_timeout,
    )
    executor = LocalActionExecutor(
        actions=default_actions(
            restart_vlc=settings.actions.restart_vlc,
            shutdown=settings.actions.shutdown,
            reboot=settings.actions.reboot,
        )
    )
    return CommandDispatcher(backend=backend, executor=executor)


async def run_relay(settings: Settings) -> None:
    """Serve TCP, UDP and (optionally) HTTP until one of them fails.

    Raises:
        OSError: If a listening address cannot be bound, or a listener
            dies with a socket error.
    """
    logger.info(
        "Starting VLC controller servers (vlc=%s tcp=%s udp=%s)",
        settings.vlc.address, settings.listener.tcp_address, settings.listener.udp_address,
    )
    dispatcher = build_dispatcher(settings)
    tcp = TcpListener(settings.listener.tcp_address, dispatcher)
    udp = UdpListener(settings.listener.udp_address, dispatcher)

    await tcp.start()
    try:
        await udp.start()
    except OSError:
        await tcp.close()
        raise

    tasks = [
        asyncio.create_task(tcp.serve_forever(), name="TCP"),
        asyncio.create_task(udp.serve_forever(), name="UDP"),
    ]

    api_server = None
    if settings.api.enabled:
        from vlc_control.server.http import create_app, create_server

        api_server = create_server(
            create_app(dispatcher), host=settings.api.host, port=settings.api.port,
        )
        tasks.append(asyncio.create_task(api_server.serve(), name="HTTP"))
        logger.info("HTTP API enabled on %s:%d", settings.api.host, settings.api.port)

    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                logger.error("%s server crashed: %s", task.get_name(), exc)
                raise exc
            logger.info("%s server stopped", task.get_name())
    finally:
        if api_server is not None:
            api_server.should_exit = True
        # Client connections must be closed before serve_forever can unwind
        await tcp.close()
        await udp.close()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
