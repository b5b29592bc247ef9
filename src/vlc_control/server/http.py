"""Optional REST API in front of the command dispatcher.

Convenient for clients that can speak HTTP but not raw sockets. It runs
the same dispatcher as the TCP and UDP listeners, so the same size
limit and allow-list apply.

    GET  /health   -> {"status": "ok", "backend": "127.0.0.1:54322", ...}
    POST /command  <- {"command": "pause"}
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from vlc_control import __version__
from vlc_control.dispatcher import CommandDispatcher
from vlc_control.errors import (
    BackendUnreachableError,
    CommandTooLargeError,
    InvalidEncodingError,
    UnauthorizedCommandError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class CommandRequest(BaseModel):
    command: str = Field(description="Command text, e.g. 'pause' or 'pi_reboot'")


class CommandResponse(BaseModel):
    status: str = "ok"
    route: str = Field(description="'forwarded' or 'local_action'")


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = __version__
    backend: str = ""
    allowed_commands: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(dispatcher: CommandDispatcher) -> FastAPI:
    """Create the REST API application bound to ``dispatcher``."""
    app = FastAPI(title="vlc-control", version=__version__)
    app.state.dispatcher = dispatcher

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        d: CommandDispatcher = app.state.dispatcher
        return HealthResponse(
            backend=d.backend.address,
            allowed_commands=d.allow_list.names(),
        )

    @app.post("/command", response_model=CommandResponse)
    async def command(req: CommandRequest) -> CommandResponse:
        d: CommandDispatcher = app.state.dispatcher
        data = req.command.encode("utf-8")
        # Backends are line based; HTTP bodies carry no terminator
        if not data.endswith(b"\n"):
            data += b"\n"
        try:
            route = await d.dispatch(data)
        except CommandTooLargeError as e:
            raise HTTPException(status_code=413, detail=str(e))
        except InvalidEncodingError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except UnauthorizedCommandError as e:
            raise HTTPException(status_code=403, detail=str(e))
        except BackendUnreachableError as e:
            raise HTTPException(status_code=502, detail=str(e))
        logger.debug("HTTP command %r -> %s", req.command, route.value)
        return CommandResponse(route=route.value)

    return app


def create_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    """Wrap ``app`` in a uvicorn server that can share the relay's event loop."""
    config = uvicorn.Config(app, host=host, port=port, log_config=None)
    return uvicorn.Server(config)
