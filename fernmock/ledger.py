"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Request/response ledger shared by all emulators.

The ledger keeps an append-only log of inbound requests for assertions and a
table of canned responses keyed by "METHOD path" that emulators consult when
their own routing does not match a request.
"""

from fernmock.models import MockRequest, MockResponse


def response_key(method: str, path: str) -> str:
    """Build the registry key for a method and path."""
    return f"{method.upper()} {path}"


class RequestLedger:
    """Append-only request log plus a keyed canned-response registry."""

    def __init__(self):
        self.requests: list[MockRequest] = []
        self.responses: dict[str, MockResponse] = {}

    def record(self, request: MockRequest) -> None:
        self.requests.append(request)

    def get_requests(self) -> list[MockRequest]:
        """Return a snapshot of every recorded request, oldest first."""
        return list(self.requests)

    def get_requests_for_path(self, method: str, path: str) -> list[MockRequest]:
        """
        Return recorded requests matching a method and an exact path.

        Args:
            method: HTTP method, compared case-insensitively
            path: Request path without query string

        Returns:
            Matching requests in arrival order
        """
        method = method.upper()
        return [req for req in self.requests if req.method == method and req.path == path]

    @property
    def last_request(self) -> MockRequest | None:
        return self.requests[-1] if self.requests else None

    def set_response(self, method: str, path: str, response: MockResponse) -> None:
        """Register or overwrite the canned response for a method and path."""
        self.responses[response_key(method, path)] = response

    def get_response(self, method: str, path: str) -> MockResponse | None:
        return self.responses.get(response_key(method, path))

    def clear_requests(self) -> None:
        self.requests = []
