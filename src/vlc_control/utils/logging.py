"""Logging setup for the relay.

All output goes through the ``vlc_control`` logger and, when the HTTP API
is enabled, the ``uvicorn`` loggers. uvicorn is started with
``log_config=None`` so it does not install handlers of its own.
"""

from __future__ import annotations

import logging
import sys

from vlc_control.config.settings import LoggingConfig

PACKAGE_LOGGER = "vlc_control"
SERVER_LOGGER = "uvicorn"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _qualify(name: str) -> str:
    if name == PACKAGE_LOGGER or name.startswith((f"{PACKAGE_LOGGER}.", SERVER_LOGGER)):
        return name
    return f"{PACKAGE_LOGGER}.{name}"


def _install(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the relay's loggers.

    Sets the level and format, logs to stderr and, when ``config.file``
    is set, to that file as well. ``config.modules`` maps logger names
    (relative to the package, e.g. ``backend.vlc``) to their own level.
    Calling it again replaces the handlers installed by the previous call.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(_level(config.level))
    _install(package_logger, handlers)

    server_logger = logging.getLogger(SERVER_LOGGER)
    server_logger.setLevel(_level(config.level))
    server_logger.propagate = False
    _install(server_logger, handlers)

    for name, level in config.modules.items():
        logging.getLogger(_qualify(name)).setLevel(_level(level))

    package_logger.info("Logging initialized at %s level", config.level.upper())
