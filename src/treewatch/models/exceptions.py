"""
Custom exception classes for the treewatch polling monitor.

Provides specific exception types for the different failure scenarios of
scanning, observing and scheduling so callers can react to each of them.
"""

from typing import Any


class BaseError(Exception):
    """
    Base exception class for all treewatch errors.

    All custom exceptions in the package inherit from this class to enable
    consistent error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context information
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation including error code if present."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"context={self.context})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class StorageError(BaseError):
    """Raised when a storage provider cannot list or inspect a path."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(message, error_code="STORAGE_ERROR", context=context, cause=underlying_error)


class MonitoringError(BaseError):
    """Raised when observing or monitoring operations fail."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
        error_code: str = "MONITORING_ERROR",
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code=error_code,
            context=context,
            cause=underlying_error,
        )


class InitializationError(MonitoringError):
    """Raised when an observer cannot build its baseline snapshot."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        underlying_error: Exception | None = None,
    ):
        super().__init__(
            message,
            path=path,
            operation="initialize",
            underlying_error=underlying_error,
            error_code="INITIALIZATION_ERROR",
        )


class ShutdownError(MonitoringError):
    """Raised when one or more observers fail during monitor shutdown."""

    def __init__(
        self,
        message: str,
        failures: list[Exception] | None = None,
    ):
        self.failures = failures or []
        super().__init__(
            message,
            operation="stop",
            underlying_error=self.failures[0] if self.failures else None,
            error_code="SHUTDOWN_ERROR",
        )
        self.context["failure_count"] = len(self.failures)


class LifecycleError(MonitoringError):
    """Raised on an invalid start/stop transition of a monitor."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message, operation=operation, error_code="LIFECYCLE_ERROR")


class MonitorAlreadyRunningError(LifecycleError):
    """Raised when starting a monitor that is already running."""

    def __init__(self, message: str = "Monitor is already running"):
        super().__init__(message, operation="start")


class MonitorNotRunningError(LifecycleError):
    """Raised when stopping a monitor that is not running."""

    def __init__(self, message: str = "Monitor is not running"):
        super().__init__(message, operation="stop")
