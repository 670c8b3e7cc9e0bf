"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fernmock.pm_mock_factory import (
    AHA_FEATURE_UNIVERSE,
    JIRA_ISSUE_UNIVERSE,
    AhaFeatureFactory,
    JiraIssueFactory,
    JiraSeedFactory,
)

REFERENCE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit()
class TestJiraIssueFactory:
    def test_create_is_pure(self):
        """The same index and reference time always give the same issue."""
        assert JiraIssueFactory.create(7, REFERENCE_TIME) == JiraIssueFactory.create(7, REFERENCE_TIME)

    def test_timestamps_follow_reference_time(self):
        issue = JiraIssueFactory.create(2, REFERENCE_TIME)

        assert issue["fields"]["created"] == (REFERENCE_TIME - timedelta(days=2)).isoformat()
        assert issue["fields"]["updated"] == (REFERENCE_TIME - timedelta(hours=2)).isoformat()

    def test_field_cycles(self):
        issues = [JiraIssueFactory.create(i, REFERENCE_TIME) for i in range(6)]

        assert [i["fields"]["status"]["name"] for i in issues] == [
            "To Do",
            "In Progress",
            "Done",
            "To Do",
            "In Progress",
            "Done",
        ]
        assert issues[5]["fields"]["assignee"]["displayName"] == "User 1"

    def test_fix_version_rolls_over_every_ten(self):
        assert JiraIssueFactory.create(9, REFERENCE_TIME)["fields"]["fixVersions"] == [
            {"name": "Release 1.10"}
        ]
        assert JiraIssueFactory.create(10, REFERENCE_TIME)["fields"]["fixVersions"] == [
            {"name": "Release 2.1"}
        ]

    def test_search_page(self):
        page = JiraIssueFactory.search(20, 10, REFERENCE_TIME)

        assert page["startAt"] == 20
        assert page["maxResults"] == 10
        assert page["total"] == JIRA_ISSUE_UNIVERSE
        assert [i["key"] for i in page["issues"]] == [f"TEST-{n}" for n in range(21, 31)]

    def test_search_clamps_negative_start(self):
        page = JiraIssueFactory.search(-5, 2, REFERENCE_TIME)

        assert page["startAt"] == 0
        assert [i["key"] for i in page["issues"]] == ["TEST-1", "TEST-2"]

    @pytest.mark.parametrize("max_results", [0, -3])
    def test_search_non_positive_page_size(self, max_results):
        assert JiraIssueFactory.search(0, max_results, REFERENCE_TIME)["issues"] == []


@pytest.mark.unit()
class TestAhaFeatureFactory:
    def test_list_features(self):
        result = AhaFeatureFactory.list_features(REFERENCE_TIME)

        assert len(result["features"]) == AHA_FEATURE_UNIVERSE
        assert result["pagination"]["total_records"] == AHA_FEATURE_UNIVERSE
        assert result["features"][-1]["id"] == "FEAT-20"

    def test_feature_shape(self):
        feature = AhaFeatureFactory.create(6, REFERENCE_TIME)

        assert feature["name"] == "Feature 7"
        assert feature["score"] == 100
        assert feature["release"] == {"name": "Release 2.2"}
        assert feature["team"] == {"name": "Team 1"}
        assert feature["created_at"] == (REFERENCE_TIME - timedelta(hours=288)).isoformat()


@pytest.mark.unit()
class TestJiraSeedFactory:
    def test_projects(self):
        projects = JiraSeedFactory.projects()

        assert projects["FERN"].id == "10000"
        assert projects["TEST"].name == "Test Project"

    def test_fresh_objects_per_call(self):
        """Callers may mutate what they receive without affecting later calls."""
        first = JiraSeedFactory.projects()
        first["FERN"].name = "Changed"
        first.pop("TEST")

        second = JiraSeedFactory.projects()
        assert second["FERN"].name == "Fern Platform"
        assert "TEST" in second

    def test_issue_types_use_base_url(self):
        types = JiraSeedFactory.issue_types("http://127.0.0.1:5000")

        assert types[3]["iconUrl"] == "http://127.0.0.1:5000/images/icons/issuetypes/bug.svg"
