"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
HTTP transport for the emulators.

Each emulator is served by its own FastAPI application with a single
catch-all route that hands the raw request to the emulator's
``handle_request``. The application runs under uvicorn on a background thread
bound to an ephemeral port, so a scenario gets a fresh URL per emulator and
can stop the listener synchronously at teardown.
"""

import asyncio
import socket
import threading
import time
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from fernmock.core.config import ServerConfig
from fernmock.core.logging import get_logger, log_operation
from fernmock.exceptions import EmulatorStartupError
from fernmock.models import MockResponse

if TYPE_CHECKING:
    from fernmock.base_mock_server import BaseMockServer

logger = get_logger("fernmock.http_server")

HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def render_response(response: MockResponse) -> Response:
    """
    Convert an emulator response into a Starlette response.

    Args:
        response: The response produced by the emulator

    Returns:
        A JSON response, or an empty one when the body is None
    """
    if response.body is None:
        return Response(status_code=response.status_code, headers=response.headers)
    if isinstance(response.body, bytes):
        return Response(
            content=response.body, status_code=response.status_code, headers=response.headers
        )
    return JSONResponse(
        content=response.body, status_code=response.status_code, headers=response.headers
    )


def create_app(emulator: "BaseMockServer") -> FastAPI:
    """
    Build the FastAPI application that fronts an emulator.

    The interactive docs routes are disabled so every path, including
    ``/docs``, reaches the emulator.
    """
    app = FastAPI(
        title=f"{emulator.name} emulator",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=HTTP_METHODS)
    async def dispatch(request: Request, path: str) -> Response:
        body = await request.body()
        # handle_request takes the emulator's threading lock, so keep it off the event loop
        response = await run_in_threadpool(
            emulator.handle_request,
            request.method,
            request.url.path,
            query=dict(request.query_params),
            headers=dict(request.headers),
            body=body,
        )
        if response.delay > 0:
            # Awaited outside the emulator lock so other requests keep flowing
            await asyncio.sleep(response.delay)
        return render_response(response)

    return app


class EmulatorHTTPServer:
    """
    Runs one emulator behind a uvicorn listener on a background thread.
    """

    def __init__(self, emulator: "BaseMockServer", config: ServerConfig | None = None):
        """
        Initialize the listener without binding it.

        Args:
            emulator: The emulator whose handle_request serves each call
            config: Listener settings; port 0 selects an ephemeral port
        """
        self.emulator = emulator
        self.config = config or ServerConfig()
        self.app = create_app(emulator)
        self.port: int | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def url(self) -> str:
        """Base URL clients should use to reach the emulator."""
        if self.config.public_url:
            return self.config.public_url
        if self.port is None:
            raise RuntimeError(f"{self.emulator.name} emulator is not running")
        host = self.config.host
        if host in ("0.0.0.0", "::", ""):
            host = "127.0.0.1"
        return f"http://{host}:{self.port}"

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.config.host, self.config.port))
        return sock

    def start(self) -> None:
        """
        Bind the port and block until uvicorn reports it is serving.

        Raises:
            EmulatorStartupError: If the listener is not up within the
                configured startup timeout
        """
        if self._thread is not None:
            return

        with log_operation(logger, f"starting {self.emulator.name} emulator"):
            self._socket = self._bind()
            self.port = self._socket.getsockname()[1]

            uvicorn_config = uvicorn.Config(
                self.app,
                host=self.config.host,
                port=self.port,
                log_level="warning",
                access_log=False,
                lifespan="off",
            )
            self._server = uvicorn.Server(uvicorn_config)
            self._thread = threading.Thread(
                target=self._server.run,
                kwargs={"sockets": [self._socket]},
                name=f"fernmock-{self.emulator.name}-{self.port}",
                daemon=True,
            )
            self._thread.start()

            deadline = time.monotonic() + self.config.startup_timeout
            while not self._server.started:
                if not self._thread.is_alive():
                    self._cleanup()
                    raise EmulatorStartupError(
                        f"{self.emulator.name} emulator exited during startup"
                    )
                if time.monotonic() > deadline:
                    self.stop()
                    raise EmulatorStartupError(
                        f"{self.emulator.name} emulator did not start within "
                        f"{self.config.startup_timeout}s"
                    )
                time.sleep(0.01)

        logger.info(f"{self.emulator.name} emulator listening on {self.url}")

    def stop(self) -> None:
        """Signal uvicorn to exit and wait for the thread to finish."""
        if self._thread is None:
            return

        with log_operation(logger, f"stopping {self.emulator.name} emulator"):
            if self._server is not None:
                self._server.should_exit = True
            self._thread.join(timeout=self.config.startup_timeout)
            if self._thread.is_alive():
                logger.warning(f"{self.emulator.name} emulator thread did not exit in time")
            self._cleanup()

    def _cleanup(self) -> None:
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._server = None
        self._thread = None
        self.port = None

    def serve_forever(self) -> None:
        """Run the listener on the calling thread until interrupted."""
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level="info",
        )
