"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""Logging infrastructure with contextual request tracking.

This module provides structured logging for the emulators: per-record context
data, correlation IDs that tie the log lines of one scenario together, and
redaction of credentials that flow through the emulated auth endpoints.
"""

import json
import logging
import os
import re
import sys
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from re import Pattern
from typing import Any

from rich.logging import RichHandler

# Thread-local storage for context data
_context_local = threading.local()


class CorrelationIdManager:
    """
    Manages correlation IDs across threads using thread-local storage.

    Each emulator listener runs on its own thread, so a scenario sets its
    correlation ID on the driving thread and the request log lines carry the
    ID generated for the listener thread.
    """

    def get_correlation_id(self) -> str:
        """
        Get the current correlation ID or generate a new one.
        """
        if not getattr(_context_local, "correlation_id", None):
            _context_local.correlation_id = f"fernmock-{uuid.uuid4()}"
        return _context_local.correlation_id

    def set_correlation_id(self, correlation_id: str) -> None:
        """
        Set the current correlation ID.
        """
        _context_local.correlation_id = correlation_id

    def clear_correlation_id(self) -> None:
        """
        Clear the current correlation ID.
        """
        if hasattr(_context_local, "correlation_id"):
            delattr(_context_local, "correlation_id")


# Global correlation ID manager instance
correlation_manager = CorrelationIdManager()


class LogRedactor:
    """
    Redacts credentials from log messages and header dumps.
    """

    SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key", "proxy-authorization"})

    def __init__(self) -> None:
        """
        Initialize the log redactor with patterns for sensitive information.
        """
        self.patterns: dict[str, Pattern] = {
            "api_key": re.compile(
                r'(api[_-]?key|token)["\']?\s*[:=]\s*["\']?([^"\'&\s]{8,})', re.IGNORECASE
            ),
            "password": re.compile(
                r'(password|passwd|secret)["\']?\s*[:=]\s*["\']?([^"\'&\s]+)', re.IGNORECASE
            ),
            "authorization": re.compile(
                r"(Basic|Bearer)\s+([A-Za-z0-9+/=._\-]{4,})", re.IGNORECASE
            ),
        }

    def redact(self, message: str) -> str:
        """
        Redact sensitive information from the message.
        """
        if not isinstance(message, str):
            return message

        for field, pattern in self.patterns.items():
            if field == "authorization":
                message = pattern.sub(r"\1 [REDACTED]", message)
            else:
                # Keep the key, redact the value
                message = pattern.sub(r"\1: [REDACTED]", message)
        return message

    def redact_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """
        Return a copy of the headers with credential-bearing values masked.
        """
        return {
            name: "[REDACTED]" if name.lower() in self.SENSITIVE_HEADERS else value
            for name, value in headers.items()
        }


# Global redactor instance
redactor = LogRedactor()


class StructuredLogger(logging.Logger):
    """
    Logger that supports structured logging with context data.

    Accepts a ``context`` keyword on every logging call; the mapping is stored
    on the record as ``context_data`` and rendered by the formatters below.
    """

    def _log(
        self,
        level: int,
        msg: Any,
        args: tuple,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **kwargs: Any,
    ) -> None:
        """
        Log a message with the specified level and optional context.

        Args:
        ----
            level: The log level (DEBUG, INFO, etc.)
            msg: The message to log
            args: Arguments for string formatting
            exc_info: Exception info for traceback
            extra: Extra attributes to add to the LogRecord
            stack_info: Whether to include stack info
            stacklevel: Stack frame offset used to find the caller
            **kwargs: Additional keyword arguments, which may include 'context'

        """
        context = kwargs.pop("context", None)

        extra = dict(extra) if extra else {}
        if context:
            # context_data avoids clashing with LogRecord attributes
            extra["context_data"] = context
        extra["correlation_id"] = correlation_manager.get_correlation_id()

        if isinstance(msg, str):
            msg = redactor.redact(msg)

        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel + 1)


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records as JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
        ----
            record: The LogRecord to format

        Returns:
        -------
            A JSON string representation of the log record

        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id

        if getattr(record, "context_data", None):
            log_data["context"] = record.context_data

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


class RichContextFormatter(logging.Formatter):
    """
    Formatter for Rich console output with context data.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if getattr(record, "context_data", None):
            context_str = " ".join(f"[{k}={v}]" for k, v in record.context_data.items())
            if context_str:
                message = f"{message} {context_str}"

        if hasattr(record, "correlation_id"):
            message = f"{message} [correlation_id={record.correlation_id}]"

        return message


@contextmanager
def log_operation(
    logger: logging.Logger,
    operation_name: str,
    level: int = logging.INFO,
    context: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Context manager for logging operations with timing and context tracking.

    Args:
    ----
        logger: The logger instance to use
        operation_name: Name of the operation being performed
        level: Log level to use
        context: Additional context data to include in the logs

    Raises:
    ------
        Exception: Re-raises any exception that occurs within the context

    """
    start_time = time.time()
    context = dict(context or {})
    context["operation_id"] = str(uuid.uuid4())[:8]

    logger.log(level, f"Starting {operation_name}", context=context)

    try:
        yield
    except Exception as e:
        duration = time.time() - start_time
        error_context = {
            **context,
            "error_type": type(e).__name__,
            "error": str(e),
            "duration": f"{duration:.2f}s",
        }
        logger.log(
            logging.ERROR,
            f"Failed {operation_name} after {duration:.2f}s",
            context=error_context,
            exc_info=True,
        )
        raise

    duration = time.time() - start_time
    logger.log(level, f"Completed {operation_name} in {duration:.2f}s", context=context)


@contextmanager
def correlation_id(correlation_id: str | None = None) -> Iterator[str]:
    """
    Context manager for setting a correlation ID for the current context.

    Args:
    ----
        correlation_id: ID to use, or None to generate a new one

    Yields:
    ------
        str: The current correlation ID (either provided or generated)

    """
    previous_id = getattr(_context_local, "correlation_id", None)

    correlation_manager.set_correlation_id(correlation_id or f"fernmock-{uuid.uuid4()}")

    try:
        yield correlation_manager.get_correlation_id()
    finally:
        if previous_id:
            correlation_manager.set_correlation_id(previous_id)
        else:
            correlation_manager.clear_correlation_id()


def configure_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    json_format: bool = False,
    include_timestamp: bool = True,
    use_rich: bool = True,
    debug: bool = False,
) -> None:
    """
    Configure emulator logging.

    Args:
    ----
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL or integer)
        log_file: Optional path to log file
        json_format: Whether to use JSON format for logs
        include_timestamp: Whether to include timestamps in logs
        use_rich: Whether to use Rich for console output
        debug: Whether to force debug mode

    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if debug:
        level = logging.DEBUG

    format_str = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        if include_timestamp
        else "[%(levelname)s] %(name)s: %(message)s"
    )

    handlers: list[logging.Handler] = []

    if use_rich and not json_format:
        rich_handler = RichHandler(rich_tracebacks=True, markup=False, show_time=include_timestamp)
        rich_handler.setFormatter(RichContextFormatter("%(message)s"))
        handlers.append(rich_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            JSONFormatter() if json_format else logging.Formatter(format_str)
        )
        handlers.append(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(format_str))
        handlers.append(file_handler)

    logger = get_logger("fernmock")
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)

    # uvicorn's access log duplicates the emulator's own request log
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))

    logger.debug(f"Logging configured with level {logging.getLevelName(level)}")


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Loggers are created with the StructuredLogger class even when
    configure_logging has not run yet, so ``context=`` is always accepted.

    Args:
    ----
        name: Name of the logger, typically a ``fernmock.*`` dotted name

    Returns:
    -------
        A structured logger instance

    """
    previous_class = logging.getLoggerClass()
    logging.setLoggerClass(StructuredLogger)
    try:
        return logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous_class)
