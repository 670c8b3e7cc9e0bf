"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Configuration management for Fern Mocks.

This module provides a central location for the emulator settings. It handles
environment variables, default values, and validation of configuration
parameters for the listener, the logging stack and the scenario harness.
"""

import logging
import os
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class BaseConfig(BaseModel):
    """Base configuration class with common functionality."""

    ENV_PREFIX: ClassVar[str] = "FERNMOCK_"

    @classmethod
    def from_env(cls, **overrides: Any) -> "BaseConfig":
        """
        Create a configuration instance from environment variables.

        Args:
        ----
            **overrides: Key-value pairs that override environment variables

        Returns:
        -------
            An instance of the configuration class

        """
        raise NotImplementedError("Subclasses must implement from_env method")

    @classmethod
    def get_env_var(cls, key: str, default: Any = None) -> Any:
        """
        Get an environment variable with the class prefix.

        Args:
        ----
            key: Key name without prefix
            default: Default value if environment variable is not found

        Returns:
        -------
            The environment variable value or default

        """
        env_key = f"{cls.ENV_PREFIX}{key.upper()}"
        return os.environ.get(env_key, default)

    @classmethod
    def get_env_flag(cls, key: str, default: bool) -> bool:
        """Read a true/false environment variable."""
        return str(cls.get_env_var(key, str(default))).lower() in ("1", "true", "yes")


class LoggingConfig(BaseConfig):
    """Configuration for logging settings."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    use_rich: bool = Field(
        default=True,
        description="Whether to use rich for logging formatting",
    )
    json_format: bool = Field(
        default=False,
        description="Whether to use JSON format for logs",
    )
    log_file: str | None = Field(
        default=None,
        description="Path to the log file (None for console-only logging)",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Validate that the log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        value = value.upper()
        if value not in valid_levels:
            logger.warning(f"Invalid log level '{value}', defaulting to INFO")
            return "INFO"
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> "LoggingConfig":
        """Create a logging configuration from environment variables."""
        config = {
            "level": cls.get_env_var("LOG_LEVEL", "INFO"),
            "use_rich": cls.get_env_flag("LOG_USE_RICH", True),
            "json_format": cls.get_env_flag("LOG_JSON", False),
            "log_file": cls.get_env_var("LOG_FILE", None),
        }
        config.update(overrides)
        return cls(**config)

    def get_log_level_int(self) -> int:
        """Get the numeric logging level."""
        return getattr(logging, self.level)

    def configure_logging(self, debug: bool = False) -> None:
        """
        Configure logging based on the settings.

        Args:
        ----
            debug: Whether to force debug mode

        """
        from fernmock.core.logging import configure_logging as configure_contextual_logging

        configure_contextual_logging(
            level=self.get_log_level_int(),
            log_file=self.log_file,
            json_format=self.json_format,
            include_timestamp=True,
            use_rich=self.use_rich,
            debug=debug,
        )


class ServerConfig(BaseConfig):
    """Configuration for the emulator HTTP listener."""

    host: str = Field(
        default="127.0.0.1",
        description="Interface the emulator listener binds to",
    )
    port: int = Field(
        default=0,
        description="Port to bind; 0 asks the OS for an ephemeral port",
        ge=0,
        le=65535,
    )
    startup_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the listener to report ready",
        gt=0,
    )
    public_url: str | None = Field(
        default=None,
        description="URL advertised to clients instead of the bound address "
        "(e.g. an in-cluster service name)",
    )

    @field_validator("public_url")
    @classmethod
    def validate_public_url(cls, value: str | None) -> str | None:
        """Strip trailing slashes and require an http(s) scheme."""
        if not value:
            return None
        if not value.startswith(("http://", "https://")):
            value = f"http://{value}"
        return value.rstrip("/")

    @classmethod
    def from_env(cls, **overrides: Any) -> "ServerConfig":
        """Create a listener configuration from environment variables."""
        config = {
            "host": cls.get_env_var("HOST", "127.0.0.1"),
            "port": int(cls.get_env_var("PORT", "0")),
            "startup_timeout": float(cls.get_env_var("STARTUP_TIMEOUT", "10.0")),
            "public_url": cls.get_env_var("PUBLIC_URL", None),
        }
        config.update(overrides)
        return cls(**config)


class HarnessConfig(BaseConfig):
    """Configuration for wiring the system under test to an emulator."""

    pm_base_url_env: str = Field(
        default="FERN_PM_CONNECTOR_BASE_URL",
        description="Environment variable the system under test reads its PM base URL from",
    )

    @field_validator("pm_base_url_env")
    @classmethod
    def validate_env_name(cls, value: str) -> str:
        """Reject empty variable names."""
        if not value or not value.strip():
            raise ValueError("pm_base_url_env must be a non-empty variable name")
        return value.strip()

    @classmethod
    def from_env(cls, **overrides: Any) -> "HarnessConfig":
        """Create a harness configuration from environment variables."""
        config = {
            "pm_base_url_env": cls.get_env_var("PM_BASE_URL_ENV", "FERN_PM_CONNECTOR_BASE_URL"),
        }
        config.update(overrides)
        return cls(**config)


class AppConfig(BaseConfig):
    """Main configuration that aggregates all other configurations."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="Emulator listener configuration",
    )
    harness: HarnessConfig = Field(
        default_factory=HarnessConfig,
        description="Scenario harness configuration",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode flag",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> "AppConfig":
        """Create an application configuration from environment variables."""
        config = {
            "logging": LoggingConfig.from_env(),
            "server": ServerConfig.from_env(),
            "harness": HarnessConfig.from_env(),
            "debug": cls.get_env_flag("DEBUG", False),
        }

        nested = {"logging": LoggingConfig, "server": ServerConfig, "harness": HarnessConfig}
        for key, value in overrides.items():
            if key in nested and isinstance(value, dict):
                config[key] = nested[key](**value)
            else:
                config[key] = value

        return cls(**config)

    def configure_logging(self) -> None:
        """Configure logging based on the settings."""
        self.logging.configure_logging(debug=self.debug)


# Global app configuration
_app_config = None


def get_app_config() -> AppConfig:
    """
    Get the global application configuration.

    Returns
    -------
        The application configuration instance

    """
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config


def init_app_config(config: AppConfig | None = None, **kwargs: Any) -> AppConfig:
    """
    Initialize the global application configuration.

    Args:
    ----
        config: An existing AppConfig instance
        **kwargs: Key-value pairs for creating a new AppConfig

    Returns:
    -------
        The application configuration instance

    """
    global _app_config
    _app_config = config if config is not None else AppConfig.from_env(**kwargs)
    return _app_config
