"""
HTTP façade for the projector controller.

``GET /<command>`` reads a property, ``PUT /<command>`` with a body of
``{"State": "Up"}`` or ``{"State": "Down"}`` writes one.  Controller failures
are mapped to distinct status codes:

* ``SerialPortError``    → 500
* ``UnsupportedCommand`` → 501 (404 for an unknown command name)
* ``PowerIsDown``        → 409

Run with ``projectorctl-api --config projectorctl.yaml``.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import ServerConfig, load_config
from .constants import LOG_FORMAT
from .controller import ProjectorController
from .exceptions import (
    ControllerErr,
    ProjectorError,
    SerialPortError,
    UnknownCommandError,
)
from .protocol import Command, CommandKind, Reply, SubCommand, parse_kind

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ControllerErr.SERIAL_PORT_ERROR: 500,
    ControllerErr.UNSUPPORTED_COMMAND: 501,
    ControllerErr.POWER_IS_DOWN: 409,
}


class StateBody(BaseModel):
    """Request body of ``PUT /<command>``."""

    model_config = ConfigDict(populate_by_name=True)

    state: SubCommand = Field(alias="State")


class ErrorBody(BaseModel):
    error: str
    detail: str


# ---------------------------------------------------------------------------
# Shared controller
# ---------------------------------------------------------------------------


class SharedController:
    """Serializes access to one :class:`ProjectorController`.

    The lock is held for a full request/response exchange.  After a serial
    failure the connection is closed and reopened on the next call.
    """

    def __init__(self, controller: ProjectorController) -> None:
        self.controller = controller
        self._lock = threading.Lock()

    def read(self, command: Command) -> Reply:
        with self._lock:
            self._ensure_connected()
            try:
                return self.controller.read(command)
            except SerialPortError:
                self.controller.disconnect()
                raise

    def write(self, command: Command) -> None:
        with self._lock:
            self._ensure_connected()
            try:
                self.controller.write(command)
            except SerialPortError:
                self.controller.disconnect()
                raise

    def close(self) -> None:
        with self._lock:
            self.controller.disconnect()

    def _ensure_connected(self) -> None:
        if not self.controller.is_connected:
            self.controller.connect()


def get_shared_controller(request: Request) -> SharedController:
    """Return the controller held in application state."""
    return request.app.state.projector


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


def _error_response(status_code: int, kind: ControllerErr, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": kind.value, "detail": detail},
    )


async def projector_exception_handler(request: Request, exc: ProjectorError) -> JSONResponse:
    if isinstance(exc, UnknownCommandError):
        status_code = 404
    else:
        status_code = STATUS_CODES.get(exc.kind, 500)
    kind = exc.kind or ControllerErr.SERIAL_PORT_ERROR
    logger.warning("%s %s failed: %s: %s", request.method, request.url.path, kind.value, exc)
    return _error_response(status_code, kind, str(exc))


def register_exceptions(app: FastAPI) -> None:
    app.add_exception_handler(ProjectorError, projector_exception_handler)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

_ERROR_RESPONSES = {
    404: {"model": ErrorBody},
    406: {"model": ErrorBody},
    409: {"model": ErrorBody},
    500: {"model": ErrorBody},
    501: {"model": ErrorBody},
}


def create_app(
    controller: Optional[ProjectorController] = None,
    config: Optional[ServerConfig] = None,
) -> FastAPI:
    """Build the HTTP application around *controller*.

    When no controller is given one is created from *config*.  The serial
    port is opened on the first request, so the service starts even while
    the projector is unplugged.
    """
    config = config or ServerConfig()
    if controller is None:
        controller = ProjectorController(config.device, timeout=config.timeout)
    shared = SharedController(controller)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            shared.close()

    app = FastAPI(lifespan=lifespan, title="Projector Control")
    app.state.projector = shared
    register_exceptions(app)

    @app.get("/")
    def list_commands() -> dict[str, list[str]]:
        """List the commands this projector understands."""
        return {"commands": [kind.value for kind in CommandKind]}

    @app.get("/{command}", responses=_ERROR_RESPONSES)
    def read(command: str, projector: SharedController = Depends(get_shared_controller)):
        """Read the current value of *command*."""
        kind = parse_kind(command)
        comm = Command(kind) if kind is CommandKind.LAMP_TIME else Command(kind, SubCommand.STATUS)
        reply = projector.read(comm)
        logger.info("Get state of %s: %s", comm, reply)
        return reply.to_dict()

    @app.put("/{command}", status_code=204, responses=_ERROR_RESPONSES)
    def write(
        command: str,
        body: StateBody = Body(...),
        projector: SharedController = Depends(get_shared_controller),
    ) -> Response:
        """Step *command* up or down."""
        if body.state is SubCommand.STATUS:
            return _error_response(
                406, ControllerErr.UNSUPPORTED_COMMAND, "Status cannot be written"
            )
        kind = parse_kind(command)
        comm = Command(kind) if kind is CommandKind.LAMP_TIME else Command(kind, body.state)
        projector.write(comm)
        logger.info("Set %s", comm)
        return Response(status_code=204)

    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def setup_logging(config: ServerConfig) -> None:
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="projectorctl-api",
        description="Serve the projector controller over HTTP",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--device", help="Serial port (overrides config)")
    parser.add_argument("--host", help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, help="HTTP port (overrides config)")
    args = parser.parse_args(argv)

    config = load_config(args.config) if args.config else ServerConfig()
    overrides = {
        key: value
        for key, value in (("device", args.device), ("host", args.host), ("port", args.port))
        if value is not None
    }
    config = dataclasses.replace(config, **overrides)

    setup_logging(config)
    logger.info("Serving %s on %s:%d", config.device, config.host, config.port)
    uvicorn.run(
        create_app(config=config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
