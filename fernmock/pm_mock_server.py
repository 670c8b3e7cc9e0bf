"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Generic mock server for external PM tools.

This module provides a flexible double that speaks a slice of several PM
protocols (JIRA search and issue creation, Aha! feature listing) and lets a
scenario inject arbitrary responses, errors and delays for any other path.
"""

import time
from datetime import timedelta
from typing import Any

from fernmock.base_mock_server import BaseMockServer
from fernmock.core.config import ServerConfig
from fernmock.core.logging import get_logger
from fernmock.exceptions import AuthenticationError, MalformedRequestError
from fernmock.models import MockRequest, MockResponse
from fernmock.pm_mock_factory import JIRA_ISSUE_UNIVERSE, AhaFeatureFactory, JiraIssueFactory

logger = get_logger("fernmock.pm_mock_server")

DEFAULT_START_AT = 0
DEFAULT_MAX_RESULTS = 50


def _int_param(query: dict[str, str], name: str, default: int) -> int:
    try:
        return int(query[name])
    except (KeyError, TypeError, ValueError):
        return default


class PMMockServer(BaseMockServer):
    """Mock server for JIRA/Aha!-style PM tool APIs with response injection."""

    name = "pm"
    routes = [
        ("GET", "/rest/api/2/myself", "JIRA authentication test"),
        ("GET", "/rest/api/2/search", "JIRA search over 100 issues"),
        ("POST", "/rest/api/2/issue", "JIRA issue creation (Basic)"),
        ("GET", "/api/v1/features", "Aha! features (Bearer)"),
        ("GET", "/health", "Canned health check"),
        ("GET", "/rest/api/2/serverInfo", "Canned JIRA server info"),
    ]

    def __init__(self, server_config: ServerConfig | None = None):
        """Initialize the mock server with the default canned responses."""
        self.created_issues: list[dict[str, Any]] = []
        super().__init__(server_config)

    def _setup_default_responses(self) -> None:
        self.ledger.set_response(
            "GET", "/health", MockResponse(status_code=200, body={"status": "healthy"})
        )
        self.ledger.set_response(
            "GET",
            "/rest/api/2/serverInfo",
            MockResponse(
                status_code=200,
                body={
                    "version": "8.20.0",
                    "versionNumbers": [8, 20, 0],
                    "deploymentType": "Cloud",
                    "buildNumber": 820000,
                },
            ),
        )

    # Error injection

    def simulate_error(self, method: str, path: str, status_code: int, message: str) -> None:
        """
        Configure an error response for an endpoint.

        Args:
            method: HTTP method
            path: Exact request path
            status_code: HTTP status to return
            message: Value of the ``error`` key in the body
        """
        self.set_response(method, path, MockResponse(status_code=status_code, body={"error": message}))

    def simulate_timeout(
        self,
        method: str,
        path: str,
        delay: float | timedelta,
        per_request: bool = False,
    ) -> None:
        """
        Configure a slow 200 response carrying the endpoint's current body.

        By default the delay is spent once, here, while configuring; requests
        to the endpoint are then answered immediately. Existing scenarios
        depend on that behaviour. Pass ``per_request=True`` to have the
        listener wait ``delay`` before every matching response instead.

        Args:
            method: HTTP method
            path: Exact request path
            delay: Seconds (or a timedelta) to wait
            per_request: Apply the delay on each request rather than now
        """
        if isinstance(delay, timedelta):
            delay = delay.total_seconds()

        with self._lock:
            original = self.ledger.get_response(method, path)
        body = original.body if original is not None else None

        if per_request:
            response = MockResponse(status_code=200, body=body, delay=delay)
        else:
            logger.warning(
                f"Simulated timeout for {method.upper()} {path} sleeps {delay}s at configuration time"
            )
            time.sleep(delay)
            response = MockResponse(status_code=200, body=body)

        self.set_response(method, path, response)

    # Request pipeline

    def _route(self, request: MockRequest) -> MockResponse | None:
        method, path = request.method, request.path

        if method == "GET" and path == "/rest/api/2/myself":
            return self._handle_auth_test(request)
        if method == "GET" and path == "/rest/api/2/search":
            return self._handle_jira_search(request)
        if method == "POST" and path == "/rest/api/2/issue":
            return self._handle_jira_create_issue(request)
        if method == "GET" and path == "/api/v1/features":
            return self._handle_aha_features(request)
        return None

    def _handle_auth_test(self, request: MockRequest) -> MockResponse:
        if not request.header("Authorization"):
            raise AuthenticationError("Authentication required")

        return self._json(
            {
                "key": "test-user",
                "name": "Test User",
                "emailAddress": "test@example.com",
                "displayName": "Test User",
                "active": True,
            }
        )

    def _handle_jira_search(self, request: MockRequest) -> MockResponse:
        start_at = _int_param(request.query, "startAt", DEFAULT_START_AT)
        max_results = _int_param(request.query, "maxResults", DEFAULT_MAX_RESULTS)
        logger.debug(
            f"JIRA search startAt={start_at} maxResults={max_results}",
            context={"jql": request.query.get("jql", "")},
        )
        return self._json(JiraIssueFactory.search(start_at, max_results, self.reference_time))

    def _handle_jira_create_issue(self, request: MockRequest) -> MockResponse:
        if not request.header("Authorization").startswith("Basic "):
            raise AuthenticationError("Invalid authentication")

        try:
            create_request = request.json()
        except ValueError:
            raise MalformedRequestError("Invalid request body") from None
        if not isinstance(create_request, dict):
            raise MalformedRequestError("Invalid request body")

        project_key = "TEST"
        fields = create_request.get("fields")
        if isinstance(fields, dict) and isinstance(fields.get("project"), dict):
            project_key = fields["project"].get("key") or project_key

        self.created_issues.append(create_request)
        # Numbered after the search universe so keys never collide with it
        number = JIRA_ISSUE_UNIVERSE + len(self.created_issues)
        issue_key = f"{project_key}-{number}"

        logger.info(f"Created mock JIRA issue {issue_key}")
        return self._json(
            {
                "id": f"{10000 + number}",
                "key": issue_key,
                "self": f"{self.base_url}/rest/api/2/issue/{issue_key}",
            }
        )

    def _handle_aha_features(self, request: MockRequest) -> MockResponse:
        if not request.header("Authorization").startswith("Bearer "):
            raise AuthenticationError("Invalid authentication")

        return self._json(AhaFeatureFactory.list_features(self.reference_time))
