"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Scenario harness that owns the emulators of one acceptance scenario.

The harness is constructed explicitly per scenario (or per pytest fixture) and
passed to whatever needs it; it starts emulators, points the system under test
at one of them through an environment variable, and tears everything down in
reverse order.
"""

import os
from typing import Any, TypeVar

from fernmock.base_mock_server import BaseMockServer
from fernmock.core.config import HarnessConfig, ServerConfig
from fernmock.core.logging import get_logger
from fernmock.graphql_mock_server import GraphQLMockServer
from fernmock.jira_mock_server import JiraMockServer
from fernmock.pm_mock_server import PMMockServer

logger = get_logger("fernmock.harness")

EmulatorT = TypeVar("EmulatorT", bound=BaseMockServer)

_UNSET = object()


class ScenarioHarness:
    """Lifecycle owner for the emulators used by one scenario."""

    def __init__(
        self,
        config: HarnessConfig | None = None,
        server_config: ServerConfig | None = None,
    ):
        """
        Initialize an empty harness.

        Args:
            config: Harness settings (environment variable for the PM URL)
            server_config: Listener settings applied to emulators it creates
        """
        self.config = config or HarnessConfig()
        self.server_config = server_config
        self.emulators: list[BaseMockServer] = []
        self._previous_env: Any = _UNSET

    def add(self, emulator: EmulatorT) -> EmulatorT:
        """Start an emulator and take ownership of its teardown."""
        emulator.start()
        self.emulators.append(emulator)
        return emulator

    def jira(self) -> JiraMockServer:
        return self.add(JiraMockServer(self.server_config))

    def graphql(self) -> GraphQLMockServer:
        return self.add(GraphQLMockServer(self.server_config))

    def pm(self) -> PMMockServer:
        return self.add(PMMockServer(self.server_config))

    def point_system_under_test(self, emulator: BaseMockServer) -> str:
        """
        Export the emulator URL as the system under test's PM base URL.

        The previous value of the variable is restored by ``close``.

        Returns:
            The exported URL
        """
        variable = self.config.pm_base_url_env
        if self._previous_env is _UNSET:
            self._previous_env = os.environ.get(variable)
        os.environ[variable] = emulator.url
        logger.info(f"{variable} -> {emulator.url}")
        return emulator.url

    def reset(self) -> None:
        """Reset every owned emulator between scenarios sharing a harness."""
        for emulator in self.emulators:
            emulator.reset()

    def close(self) -> None:
        """Stop all emulators, newest first, and restore the environment."""
        while self.emulators:
            emulator = self.emulators.pop()
            try:
                emulator.close()
            except Exception:
                logger.error(f"Failed to stop {emulator.name} emulator", exc_info=True)

        if self._previous_env is not _UNSET:
            variable = self.config.pm_base_url_env
            if self._previous_env is None:
                os.environ.pop(variable, None)
            else:
                os.environ[variable] = self._previous_env
            self._previous_env = _UNSET

        logger.debug("Scenario harness closed")

    def __enter__(self) -> "ScenarioHarness":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
