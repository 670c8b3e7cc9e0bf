"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Common request pipeline and lifecycle for the emulators.

Every emulator records each inbound request in its ledger, routes it through
its own method+path dispatch, falls back to a canned response registered for
"METHOD path", and finally answers with a 404 in the emulated tool's error
shape. Handlers signal failures by raising EmulatorError subclasses.
"""

import threading
from datetime import datetime, timezone
from typing import Any

from fernmock.core.config import ServerConfig
from fernmock.core.logging import get_logger, redactor
from fernmock.exceptions import EmulatorError, NotFoundError
from fernmock.http_server import EmulatorHTTPServer
from fernmock.ledger import RequestLedger
from fernmock.models import MockRequest, MockResponse

logger = get_logger("fernmock.base_mock_server")

JSON_HEADERS = {"Content-Type": "application/json"}

# Advertised in generated links when the emulator is used without a listener
OFFLINE_BASE_URL = "http://localhost"


class BaseMockServer:
    """
    Base class for the PM tool emulators.

    Subclasses implement ``_route`` and ``_format_error``; everything else
    (ledger, locking, canned-response fallback, HTTP lifecycle) lives here.
    """

    name = "base"
    # (method, path, description) rows shown by the CLI
    routes: list[tuple[str, str, str]] = []

    def __init__(self, server_config: ServerConfig | None = None):
        """
        Initialize the emulator with an empty ledger and a stopped listener.

        Args:
            server_config: Listener settings used by ``start``
        """
        self.ledger = RequestLedger()
        self.reference_time = datetime.now(timezone.utc)
        # Guards emulator state between the listener thread and the test thread
        self._lock = threading.RLock()
        self._http = EmulatorHTTPServer(self, server_config)
        self._setup_default_responses()

    def _setup_default_responses(self) -> None:
        """Register canned responses present from construction."""

    # Lifecycle

    def start(self) -> "BaseMockServer":
        """Start the HTTP listener and return self for chaining."""
        self._http.start()
        return self

    def close(self) -> None:
        """Stop the HTTP listener; safe to call more than once."""
        self._http.stop()

    def serve_forever(self) -> None:
        """Serve on the configured host and port in the foreground."""
        self._http.serve_forever()

    @property
    def is_running(self) -> bool:
        return self._http.is_running

    @property
    def url(self) -> str:
        """Base URL of the running listener."""
        return self._http.url

    @property
    def base_url(self) -> str:
        """URL used inside generated payloads, valid with or without a listener."""
        if self._http.config.public_url or self.is_running:
            return self._http.url
        return OFFLINE_BASE_URL

    def __enter__(self) -> "BaseMockServer":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Ledger API

    def set_response(self, method: str, path: str, response: MockResponse) -> None:
        """
        Register or override the canned response for an endpoint.

        Canned responses are consulted only for requests the emulator's own
        routing does not handle.

        Args:
            method: HTTP method
            path: Exact request path
            response: Response to return
        """
        with self._lock:
            self.ledger.set_response(method, path, response)
        logger.info(
            f"Configured {self.name} response for {method.upper()} {path}",
            context={"status_code": response.status_code},
        )

    def get_requests(self) -> list[MockRequest]:
        with self._lock:
            return self.ledger.get_requests()

    def get_requests_for_path(self, method: str, path: str) -> list[MockRequest]:
        with self._lock:
            return self.ledger.get_requests_for_path(method, path)

    def reset(self) -> None:
        """Clear the request log."""
        with self._lock:
            self.ledger.clear_requests()
        logger.debug(f"{self.name} request log cleared")

    # Request pipeline

    def handle_request(
        self,
        method: str,
        path: str,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: bytes | str | None = b"",
    ) -> MockResponse:
        """
        Handle one emulated API call.

        This is the entry point used by the HTTP transport and directly by
        unit tests.

        Args:
            method: HTTP method
            path: Request path without query string
            query: Query parameters
            headers: Request headers
            body: Raw request body

        Returns:
            The response to write back to the client
        """
        if isinstance(body, str):
            body = body.encode("utf-8")

        request = MockRequest(
            method=method.upper(),
            path=path or "/",
            query=query or {},
            headers=headers or {},
            body=body or b"",
        )

        with self._lock:
            self.ledger.record(request)
            logger.debug(
                f"{self.name} handling {request.method} {request.path}",
                context={"query": request.query, "headers": redactor.redact_headers(request.headers)},
            )

            try:
                response = self._route(request)
                if response is None:
                    response = self._canned_response(request)
                if response is None:
                    raise NotFoundError(self._not_found_message(request))
            except EmulatorError as e:
                logger.debug(
                    f"{self.name} answered {request.method} {request.path} with {e.status_code}: "
                    f"{e.message}"
                )
                response = self._error_response(e.message, e.status_code)
            except Exception as e:
                logger.error(f"Error handling {request.method} {request.path}: {e!s}", exc_info=True)
                response = self._error_response(f"Internal server error: {e!s}", 500)

        return response

    def _route(self, request: MockRequest) -> MockResponse | None:
        """Return a response for requests this emulator handles, else None."""
        return None

    def _canned_response(self, request: MockRequest) -> MockResponse | None:
        canned = self.ledger.get_response(request.method, request.path)
        if canned is None:
            return None
        return canned.model_copy(deep=True)

    def _not_found_message(self, request: MockRequest) -> str:
        return "Not found"

    def _format_error(self, message: str) -> Any:
        """Render an error message in the emulated tool's error shape."""
        return {"error": message}

    def _error_response(self, message: str, status_code: int) -> MockResponse:
        return self._json(self._format_error(message), status_code)

    def _json(self, body: Any, status_code: int = 200) -> MockResponse:
        return MockResponse(status_code=status_code, body=body, headers=dict(JSON_HEADERS))
