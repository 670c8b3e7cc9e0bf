"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Fern Mocks - PM tool emulators for Fern acceptance tests.

In-process HTTP test doubles for the JIRA REST API, the Fern connector
GraphQL API and a generic multi-tool PM backend.
"""

__version__ = "0.2.0"

from fernmock.graphql_mock_server import GraphQLMockServer
from fernmock.harness import ScenarioHarness
from fernmock.jira_mock_server import JiraMockServer
from fernmock.pm_mock_server import PMMockServer

__all__ = [
    "GraphQLMockServer",
    "JiraMockServer",
    "PMMockServer",
    "ScenarioHarness",
    "__version__",
]
