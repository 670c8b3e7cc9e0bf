"""
Fixtures package for the fernmock testing framework.

This package provides reusable emulator and logging fixtures to standardize
the approach to testing throughout the project.
"""

# Export emulator fixtures
from tests.fixtures.emulators import (
    basic_auth_headers,
    bearer_auth_headers,
    graphql_server,
    jira_server,
    live_graphql_server,
    live_jira_server,
    live_pm_server,
    pm_server,
    restore_pm_base_url_env,
    scenario_harness,
)

# Export logging fixtures
from tests.fixtures.log_capture import RecordCollector, captured_logs

__all__ = [
    "RecordCollector",
    "basic_auth_headers",
    "bearer_auth_headers",
    "captured_logs",
    "graphql_server",
    "jira_server",
    "live_graphql_server",
    "live_jira_server",
    "live_pm_server",
    "pm_server",
    "restore_pm_base_url_env",
    "scenario_harness",
]
