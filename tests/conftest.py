"""
Test configuration and fixtures for the fernmock project.

This file is the root pytest configuration file that sets up pytest
markers and imports fixtures from the fixtures modules to make them
available to all tests.
"""

import pytest

# Import emulator fixtures
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

# Import logging fixtures
from tests.fixtures.log_capture import captured_logs


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line("markers", "integration: mark a test as an integration test")
    config.addinivalue_line("markers", "cli: mark a test that tests CLI functionality")
