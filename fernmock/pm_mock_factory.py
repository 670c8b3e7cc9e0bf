"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Factories for the synthetic records served by the emulators.

Generated JIRA issues and Aha features are pure functions of their index and
a reference time, so repeated or paginated requests always see the same
records. Static JIRA metadata (projects, fields, issue types) is built here as
fresh objects on every call so callers may mutate what they receive.
"""

from datetime import datetime, timedelta
from typing import Any

from fernmock.models import JiraField, JiraFieldSchema, JiraProject, JiraUser

JIRA_ISSUE_UNIVERSE = 100
AHA_FEATURE_UNIVERSE = 20

ISSUE_STATUSES = ["To Do", "In Progress", "Done"]
ISSUE_TYPES = ["Story", "Bug", "Task"]
ISSUE_PRIORITIES = ["High", "Medium", "Low"]

FEATURE_STATUSES = ["Under consideration", "In development", "Shipped"]
FEATURE_SCORES = [100, 80, 60]


class JiraIssueFactory:
    """Deterministic JIRA issues over a fixed-size virtual universe."""

    @staticmethod
    def create(index: int, reference_time: datetime) -> dict[str, Any]:
        """
        Build the issue at a given position in the universe.

        Args:
            index: Zero-based issue index
            reference_time: Anchor for the created/updated timestamps

        Returns:
            A JIRA REST v2 issue payload
        """
        number = index + 1
        return {
            "id": f"1000{index}",
            "key": f"TEST-{number}",
            "fields": {
                "summary": f"Test Issue {number}",
                "description": f"This is test issue number {number}",
                "status": {"name": ISSUE_STATUSES[index % 3]},
                "issuetype": {"name": ISSUE_TYPES[index % 3]},
                "priority": {"name": ISSUE_PRIORITIES[index % 3]},
                "assignee": {"displayName": f"User {(index % 5) + 1}"},
                "fixVersions": [{"name": f"Release {(index // 10) + 1}.{(index % 10) + 1}"}],
                # Team field
                "customfield_10001": f"Team {(index % 3) + 1}",
                "created": (reference_time - timedelta(hours=index * 24)).isoformat(),
                "updated": (reference_time - timedelta(hours=index)).isoformat(),
            },
        }

    @classmethod
    def search(
        cls, start_at: int, max_results: int, reference_time: datetime
    ) -> dict[str, Any]:
        """
        Build one page of a /search response.

        Args:
            start_at: Index of the first issue; negative values clamp to 0
            max_results: Page size; non-positive values yield an empty page
            reference_time: Anchor for the issue timestamps

        Returns:
            A JIRA search result envelope
        """
        start_at = max(start_at, 0)
        end = min(start_at + max(max_results, 0), JIRA_ISSUE_UNIVERSE)
        return {
            "startAt": start_at,
            "maxResults": max_results,
            "total": JIRA_ISSUE_UNIVERSE,
            "issues": [cls.create(i, reference_time) for i in range(start_at, end)],
        }


class AhaFeatureFactory:
    """Deterministic Aha! features over a fixed 20-feature universe."""

    @staticmethod
    def create(index: int, reference_time: datetime) -> dict[str, Any]:
        number = index + 1
        return {
            "id": f"FEAT-{number}",
            "reference_num": f"FEAT-{number}",
            "name": f"Feature {number}",
            "description": {"body": f"This is feature number {number}"},
            "workflow_status": {"name": FEATURE_STATUSES[index % 3]},
            "score": FEATURE_SCORES[index % 3],
            "release": {"name": f"Release {(index // 5) + 1}.{(index % 5) + 1}"},
            "assigned_to_user": {"name": f"Product Manager {(index % 3) + 1}"},
            "team": {"name": f"Team {(index % 2) + 1}"},
            "created_at": (reference_time - timedelta(hours=index * 48)).isoformat(),
            "updated_at": (reference_time - timedelta(hours=index * 2)).isoformat(),
        }

    @classmethod
    def list_features(cls, reference_time: datetime) -> dict[str, Any]:
        features = [cls.create(i, reference_time) for i in range(AHA_FEATURE_UNIVERSE)]
        return {
            "features": features,
            "pagination": {
                "total_records": len(features),
                "total_pages": 1,
                "current_page": 1,
            },
        }


class JiraSeedFactory:
    """Static JIRA metadata served by the JIRA REST emulator."""

    @staticmethod
    def projects() -> dict[str, JiraProject]:
        return {
            "FERN": JiraProject(id="10000", key="FERN", name="Fern Platform"),
            "TEST": JiraProject(id="10001", key="TEST", name="Test Project"),
        }

    @staticmethod
    def user() -> JiraUser:
        return JiraUser(account_id="123", email_address="test@fern.com", display_name="Test User")

    @staticmethod
    def fields() -> list[JiraField]:
        return [
            JiraField(
                id="summary",
                name="Summary",
                clause_names=["summary"],
                field_schema=JiraFieldSchema(type="string"),
            ),
            JiraField(
                id="issuetype",
                name="Issue Type",
                clause_names=["issuetype", "type"],
                field_schema=JiraFieldSchema(type="issuetype"),
            ),
            JiraField(
                id="customfield_10000",
                name="Epic Link",
                custom=True,
                clause_names=["cf[10000]", "Epic Link"],
                field_schema=JiraFieldSchema(type="string"),
            ),
            JiraField(
                id="customfield_10001",
                name="Story Points",
                custom=True,
                clause_names=["cf[10001]", "Story Points"],
                field_schema=JiraFieldSchema(type="number"),
            ),
            JiraField(
                id="fixVersions",
                name="Fix Version/s",
                clause_names=["fixVersion"],
                field_schema=JiraFieldSchema(type="array", items="version"),
            ),
            JiraField(
                id="components",
                name="Component/s",
                clause_names=["component"],
                field_schema=JiraFieldSchema(type="array", items="component"),
            ),
            JiraField(
                id="labels",
                name="Labels",
                clause_names=["labels"],
                field_schema=JiraFieldSchema(type="array", items="string"),
            ),
        ]

    @staticmethod
    def issue_types(base_url: str) -> list[dict[str, Any]]:
        """Issue types with icon URLs served from the emulator itself."""
        types = [
            ("10000", "Epic", "A big user story that needs to be broken down.", "epic"),
            ("10001", "Story", "A user story.", "story"),
            ("10002", "Task", "A task that needs to be done.", "task"),
            (
                "10003",
                "Bug",
                "A problem which impairs or prevents the functions of the product.",
                "bug",
            ),
        ]
        return [
            {
                "id": type_id,
                "name": name,
                "description": description,
                "iconUrl": f"{base_url}/images/icons/issuetypes/{icon}.svg",
                "subtask": False,
            }
            for type_id, name, description, icon in types
        ]
