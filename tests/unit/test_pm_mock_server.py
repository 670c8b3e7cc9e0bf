"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from fernmock.models import MockResponse
from fernmock.pm_mock_server import PMMockServer


@pytest.mark.unit()
class TestPMMockServer:
    @pytest.fixture()
    def mock_server(self):
        """Create a test PM mock server instance."""
        return PMMockServer()

    def search(self, server, **params):
        query = {k: str(v) for k, v in params.items()}
        return server.handle_request("GET", "/rest/api/2/search", query=query)

    def test_default_canned_responses(self, mock_server):
        """Health and serverInfo are answered out of the box."""
        health = mock_server.handle_request("GET", "/health")
        assert health.status_code == 200
        assert health.body == {"status": "healthy"}

        info = mock_server.handle_request("GET", "/rest/api/2/serverInfo")
        assert info.status_code == 200
        assert info.body == {
            "version": "8.20.0",
            "versionNumbers": [8, 20, 0],
            "deploymentType": "Cloud",
            "buildNumber": 820000,
        }

    def test_unknown_path(self, mock_server):
        response = mock_server.handle_request("DELETE", "/rest/api/2/issue/TEST-1")

        assert response.status_code == 404
        assert response.body == {"error": "Not found"}

    def test_auth_test_endpoint(self, mock_server):
        """Any Authorization header is accepted on /myself."""
        ok = mock_server.handle_request(
            "GET", "/rest/api/2/myself", headers={"Authorization": "Whatever abc"}
        )
        assert ok.status_code == 200
        assert ok.body["emailAddress"] == "test@example.com"
        assert ok.body["active"] is True

        missing = mock_server.handle_request("GET", "/rest/api/2/myself")
        assert missing.status_code == 401
        assert missing.body == {"error": "Authentication required"}

    def test_search_defaults(self, mock_server):
        response = self.search(mock_server)

        assert response.status_code == 200
        assert response.body["startAt"] == 0
        assert response.body["maxResults"] == 50
        assert response.body["total"] == 100
        assert len(response.body["issues"]) == 50
        assert response.body["issues"][0]["key"] == "TEST-1"

    def test_search_does_not_require_auth(self, mock_server):
        assert self.search(mock_server, maxResults=1).status_code == 200

    def test_search_pagination_is_gapless(self, mock_server):
        """Paging through the universe yields every issue exactly once."""
        keys = []
        start_at = 0
        while True:
            page = self.search(mock_server, startAt=start_at, maxResults=30).body
            if not page["issues"]:
                break
            keys.extend(issue["key"] for issue in page["issues"])
            start_at += len(page["issues"])

        assert keys == [f"TEST-{n}" for n in range(1, 101)]

    def test_two_pages_of_fifty_cover_the_universe(self, mock_server):
        first = self.search(mock_server, startAt=0, maxResults=50).body["issues"]
        second = self.search(mock_server, startAt=50, maxResults=50).body["issues"]

        keys = [i["key"] for i in first + second]
        assert len(keys) == 100
        assert len(set(keys)) == 100

    def test_search_past_the_end(self, mock_server):
        response = self.search(mock_server, startAt=95, maxResults=10)

        assert [i["key"] for i in response.body["issues"]] == [f"TEST-{n}" for n in range(96, 101)]

        response = self.search(mock_server, startAt=200)
        assert response.body["issues"] == []
        assert response.body["total"] == 100

    def test_search_invalid_params_fall_back(self, mock_server):
        response = self.search(mock_server, startAt="abc", maxResults="")

        assert response.body["startAt"] == 0
        assert response.body["maxResults"] == 50

    def test_search_is_deterministic(self, mock_server):
        """The same page is identical across requests."""
        first = self.search(mock_server, startAt=10, maxResults=5).body
        second = self.search(mock_server, startAt=10, maxResults=5).body

        assert first == second

    def test_search_issue_shape(self, mock_server):
        issue = self.search(mock_server, startAt=4, maxResults=1).body["issues"][0]

        assert issue["id"] == "10004"
        assert issue["key"] == "TEST-5"
        fields = issue["fields"]
        assert fields["summary"] == "Test Issue 5"
        assert fields["status"] == {"name": "In Progress"}
        assert fields["issuetype"] == {"name": "Bug"}
        assert fields["priority"] == {"name": "Medium"}
        assert fields["assignee"] == {"displayName": "User 5"}
        assert fields["fixVersions"] == [{"name": "Release 1.5"}]
        assert fields["customfield_10001"] == "Team 2"

    def test_create_issue(self, mock_server, basic_auth_headers):
        body = {"fields": {"project": {"key": "FERN"}, "summary": "New", "issuetype": {"name": "Bug"}}}

        response = mock_server.handle_request(
            "POST", "/rest/api/2/issue", headers=basic_auth_headers, body=json.dumps(body)
        )

        assert response.status_code == 200
        assert response.body == {
            "id": "10101",
            "key": "FERN-101",
            "self": "http://localhost/rest/api/2/issue/FERN-101",
        }
        assert mock_server.created_issues == [body]

    def test_create_issue_numbers_increase(self, mock_server, basic_auth_headers):
        keys = []
        for _ in range(3):
            response = mock_server.handle_request(
                "POST", "/rest/api/2/issue", headers=basic_auth_headers, body="{}"
            )
            keys.append(response.body["key"])

        assert keys == ["TEST-101", "TEST-102", "TEST-103"]

    def test_create_issue_requires_basic_auth(self, mock_server, bearer_auth_headers):
        response = mock_server.handle_request(
            "POST", "/rest/api/2/issue", headers=bearer_auth_headers, body="{}"
        )

        assert response.status_code == 401
        assert response.body == {"error": "Invalid authentication"}
        assert mock_server.created_issues == []

    def test_create_issue_invalid_body(self, mock_server, basic_auth_headers):
        response = mock_server.handle_request(
            "POST", "/rest/api/2/issue", headers=basic_auth_headers, body="{not json"
        )

        assert response.status_code == 400
        assert response.body == {"error": "Invalid request body"}

    def test_aha_features(self, mock_server):
        response = mock_server.handle_request(
            "GET", "/api/v1/features", headers={"Authorization": "Bearer aha-token"}
        )

        assert response.status_code == 200
        features = response.body["features"]
        assert len(features) == 20
        assert features[0]["reference_num"] == "FEAT-1"
        assert features[1]["workflow_status"] == {"name": "In development"}
        assert response.body["pagination"] == {
            "total_records": 20,
            "total_pages": 1,
            "current_page": 1,
        }

    def test_aha_features_require_bearer(self, mock_server, basic_auth_headers):
        response = mock_server.handle_request("GET", "/api/v1/features", headers=basic_auth_headers)

        assert response.status_code == 401
        assert response.body == {"error": "Invalid authentication"}

    def test_set_response(self, mock_server):
        """Custom responses answer paths without an explicit route."""
        mock_server.set_response(
            "GET",
            "/api/v2/epics",
            MockResponse(status_code=202, body={"epics": []}, headers={"X-Mock": "1"}),
        )

        response = mock_server.handle_request("GET", "/api/v2/epics")

        assert response.status_code == 202
        assert response.body == {"epics": []}
        assert response.headers == {"X-Mock": "1"}

    def test_routes_take_precedence_over_canned_responses(self, mock_server):
        mock_server.set_response("GET", "/rest/api/2/search", MockResponse(body={"canned": True}))

        response = self.search(mock_server)

        assert "issues" in response.body

    def test_canned_response_is_copied(self, mock_server):
        """Mutating a returned body does not change the registered response."""
        first = mock_server.handle_request("GET", "/health")
        first.body["status"] = "mutated"

        assert mock_server.handle_request("GET", "/health").body == {"status": "healthy"}

    def test_simulate_error(self, mock_server):
        mock_server.simulate_error("GET", "/health", 503, "Service unavailable")

        response = mock_server.handle_request("GET", "/health")

        assert response.status_code == 503
        assert response.body == {"error": "Service unavailable"}

    def test_simulate_timeout_sleeps_at_configuration(self, mock_server):
        """The default mode spends the delay once, while configuring."""
        with patch("fernmock.pm_mock_server.time.sleep") as mock_sleep:
            mock_server.simulate_timeout("GET", "/health", timedelta(seconds=2))

        mock_sleep.assert_called_once_with(2.0)
        response = mock_server.handle_request("GET", "/health")
        assert response.status_code == 200
        assert response.body == {"status": "healthy"}
        assert response.delay == 0

    def test_simulate_timeout_per_request(self, mock_server):
        """Per-request mode stores the delay for the listener to apply."""
        with patch("fernmock.pm_mock_server.time.sleep") as mock_sleep:
            mock_server.simulate_timeout("GET", "/health", 1.5, per_request=True)

        mock_sleep.assert_not_called()
        response = mock_server.handle_request("GET", "/health")
        assert response.delay == 1.5
        assert response.body == {"status": "healthy"}

    def test_simulate_timeout_unknown_path(self, mock_server):
        mock_server.simulate_timeout("GET", "/slow", 0.5, per_request=True)

        response = mock_server.handle_request("GET", "/slow")

        assert response.status_code == 200
        assert response.body is None

    def test_reset_keeps_canned_responses(self, mock_server):
        mock_server.simulate_error("GET", "/health", 500, "boom")
        mock_server.handle_request("GET", "/health")

        mock_server.reset()

        assert mock_server.get_requests() == []
        assert mock_server.handle_request("GET", "/health").status_code == 500
