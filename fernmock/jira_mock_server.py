"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Mock server for the JIRA REST v2 API.

This module provides a narrow JIRA double that lets a PM-connector client
authenticate, look up projects, list fields and issue types, and read the
server version without contacting a real JIRA instance. Errors use JIRA's own
``{"errorMessages": [...], "errors": {}}`` envelope.
"""

from typing import Any

from fernmock.base_mock_server import BaseMockServer
from fernmock.core.config import ServerConfig
from fernmock.core.logging import get_logger
from fernmock.exceptions import AuthenticationError, NotFoundError
from fernmock.models import JiraProject, MockRequest, MockResponse
from fernmock.pm_mock_factory import JiraSeedFactory

logger = get_logger("fernmock.jira_mock_server")

API_PREFIX = "/rest/api/2"
PROJECT_PREFIX = f"{API_PREFIX}/project/"

DEFAULT_VALID_TOKENS = ("test-api-token-123", "valid-token")


class JiraMockServer(BaseMockServer):
    """Mock server for the JIRA REST v2 API."""

    name = "jira"
    routes = [
        ("GET", "/rest/api/2/myself", "Current user (Basic or known Bearer)"),
        ("GET", "/rest/api/2/project", "Seeded projects"),
        ("GET", "/rest/api/2/project/{key}", "Project by key"),
        ("GET", "/rest/api/2/field", "Field definitions"),
        ("GET", "/rest/api/2/issuetype", "Issue types"),
        ("GET", "/rest/api/2/serverInfo", "Server version (no auth)"),
    ]

    def __init__(self, server_config: ServerConfig | None = None):
        """Initialize the mock server with the seeded tokens and projects."""
        self.valid_tokens: set[str] = set(DEFAULT_VALID_TOKENS)
        self.projects: dict[str, JiraProject] = JiraSeedFactory.projects()
        super().__init__(server_config)

    def add_valid_token(self, token: str) -> None:
        """Allow a Bearer token on the authenticated endpoints."""
        with self._lock:
            self.valid_tokens.add(token)
        logger.info("Added valid JIRA bearer token")

    def add_project(self, key: str, project: JiraProject | dict[str, Any]) -> None:
        """
        Seed or replace a project served by /project/{key}.

        Args:
            key: Project key used in the request path
            project: Project record or its JSON form
        """
        if isinstance(project, dict):
            project = JiraProject.model_validate(project)
        with self._lock:
            self.projects[key] = project
        logger.info(f"Added JIRA project {key}")

    def _format_error(self, message: str) -> dict[str, Any]:
        return {"errorMessages": [message], "errors": {}}

    def _not_found_message(self, request: MockRequest) -> str:
        return f"Unsupported endpoint: {request.method} {request.path}"

    def _authenticate(self, request: MockRequest) -> None:
        """
        Accept any Basic credentials or an allow-listed Bearer token.

        Raises:
            AuthenticationError: If the Authorization header is missing or
                carries an unknown token or scheme
        """
        auth = request.header("Authorization")
        if auth.startswith("Basic "):
            return
        if auth.startswith("Bearer ") and auth[len("Bearer "):] in self.valid_tokens:
            return
        raise AuthenticationError("Unauthorized")

    def _route(self, request: MockRequest) -> MockResponse | None:
        if request.method != "GET":
            return None

        path = request.path
        if path == f"{API_PREFIX}/serverInfo":
            # Public endpoint, as in real JIRA
            return self._handle_server_info()
        if path == f"{API_PREFIX}/myself":
            self._authenticate(request)
            return self._json(JiraSeedFactory.user().to_json_dict())
        if path == f"{API_PREFIX}/project":
            self._authenticate(request)
            return self._json([p.to_json_dict() for p in self.projects.values()])
        if path.startswith(PROJECT_PREFIX):
            self._authenticate(request)
            return self._handle_project(path)
        if path == f"{API_PREFIX}/field":
            self._authenticate(request)
            return self._json([f.to_json_dict() for f in JiraSeedFactory.fields()])
        if path == f"{API_PREFIX}/issuetype":
            self._authenticate(request)
            return self._json(JiraSeedFactory.issue_types(self.base_url))
        return None

    def _handle_project(self, path: str) -> MockResponse:
        # /rest/api/2/project/{key}[/...]
        project_key = path[len(PROJECT_PREFIX):].split("/")[0]

        project = self.projects.get(project_key)
        if project is None:
            raise NotFoundError(f"No project could be found with key '{project_key}'.")
        return self._json(project.to_json_dict())

    def _handle_server_info(self) -> MockResponse:
        return self._json(
            {
                "baseUrl": self.base_url,
                "version": "8.20.10",
                "versionNumbers": [8, 20, 10],
                "deploymentType": "Server",
                "buildNumber": 820010,
                "serverTitle": "Mock JIRA Server",
            }
        )
