"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Error types raised inside emulator handlers.

Handlers raise these and the emulator's request pipeline renders them as an
HTTP status plus a body in the emulated tool's own error shape. None of them
stop the listener.
"""


class EmulatorError(Exception):
    """Base class for errors that map onto an HTTP error response."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(EmulatorError):
    """Missing or invalid credentials."""

    status_code = 401


class NotFoundError(EmulatorError):
    """Unknown connector, project or path."""

    status_code = 404


class MalformedRequestError(EmulatorError):
    """Request body could not be decoded or lacks required input."""

    status_code = 400


class UnknownOperationError(EmulatorError):
    """GraphQL request names no operation this emulator knows."""

    status_code = 400


class MethodNotAllowedError(EmulatorError):
    status_code = 405


class EmulatorStartupError(RuntimeError):
    """The HTTP listener did not come up within the startup timeout."""
