"""
Configuration management for the treewatch polling monitor.

Handles environment variables and `.env` files, and provides validated
defaults for scanning, scheduling and logging.
"""

import fnmatch
import logging.config
from enum import Enum
from pathlib import Path, PurePath
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from treewatch.models.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ListingErrorPolicy(str, Enum):
    """What an observer does with a directory whose listing failed."""

    EMPTY = "empty"  # treat the directory as empty for this tick
    RETAIN = "retain"  # keep the previously known children for this tick


class WatcherConfig(BaseSettings):
    """
    Central configuration class for treewatch.

    Every option can be overridden with a ``TREEWATCH_`` prefixed environment
    variable or a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="TREEWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # === Scheduling Configuration ===
    poll_interval_seconds: float = Field(default=10.0, gt=0.0, description="Delay between two scans")
    stop_timeout_seconds: float | None = Field(
        default=None, ge=0.0, description="How long stop() waits for the loop; 0 waits forever, None uses the interval"
    )
    daemon_threads: bool = Field(default=True, description="Run the monitor loop in a daemon thread")

    # === Scanning Configuration ===
    listing_error_policy: ListingErrorPolicy = Field(
        default=ListingErrorPolicy.EMPTY, description="Handling of directories that cannot be listed"
    )
    include_hidden: bool = Field(default=True, description="Report hidden files and directories")
    ignored_patterns: list[str] = Field(
        default_factory=list, description="fnmatch patterns of paths never scanned"
    )

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    # === Development Configuration ===
    debug_mode: bool = Field(default=False, description="Enable debug mode with verbose logging")

    @field_validator('ignored_patterns')
    @classmethod
    def validate_ignored_patterns(cls, v):
        """Reject blank patterns, they would never match anything useful."""
        validated = []
        for pattern in v:
            pattern = pattern.strip()
            if not pattern:
                raise ConfigurationError(
                    "ignored_patterns must not contain blank patterns",
                    config_key="ignored_patterns",
                    expected_type="non-empty fnmatch pattern",
                    actual_value=v,
                )
            validated.append(pattern)
        return validated

    def should_ignore_path(self, path: Any) -> bool:
        """Check if a path matches one of the ignored patterns (full path or name)."""
        path_str = str(path)
        name = PurePath(path_str).name
        return any(
            fnmatch.fnmatch(path_str, pattern) or fnmatch.fnmatch(name, pattern) for pattern in self.ignored_patterns
        )

    def resolve_stop_timeout(self, interval: float | None = None) -> float:
        """
        Get the effective stop timeout in seconds.

        Args:
            interval: Interval of the monitor being stopped (configured interval if not provided)

        Returns:
            The configured stop timeout, or the interval when none is set
        """
        if self.stop_timeout_seconds is None:
            return self.poll_interval_seconds if interval is None else interval
        return self.stop_timeout_seconds

    def effective_log_level(self) -> str:
        """Get the log level, forced to DEBUG in debug mode."""
        if self.debug_mode:
            return LogLevel.DEBUG.value
        return LogLevel(self.log_level).value

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        level = self.effective_log_level()
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": level,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {"treewatch": {"handlers": ["default"], "level": level, "propagate": False}},
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config


# Global configuration instance
_config: WatcherConfig | None = None


def get_config() -> WatcherConfig:
    """
    Get the global configuration instance.

    Creates a new instance on first call and reuses it for subsequent calls.
    """
    global _config
    if _config is None:
        _config = WatcherConfig()
    return _config


def reload_config() -> WatcherConfig:
    """Force reload the configuration from environment/files."""
    global _config
    _config = WatcherConfig()
    return _config


def set_config(config: WatcherConfig) -> None:
    """
    Set a custom configuration instance.

    Primarily used for testing or embedding treewatch in another application.
    """
    global _config
    _config = config


def setup_logging(config: WatcherConfig | None = None) -> None:
    """Apply the logging configuration of ``config`` (or the global one)."""
    logging.config.dictConfig((config or get_config()).get_log_config())
