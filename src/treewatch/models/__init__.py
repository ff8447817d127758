"""Data models and exceptions for the polling monitor."""

from treewatch.models.exceptions import (
    BaseError,
    ConfigurationError,
    InitializationError,
    LifecycleError,
    MonitorAlreadyRunningError,
    MonitoringError,
    MonitorNotRunningError,
    ShutdownError,
    StorageError,
)
from treewatch.models.metadata import ChangeType, FileAlterationEvent, FileMetadata

__all__ = [
    "ChangeType",
    "FileAlterationEvent",
    "FileMetadata",
    "BaseError",
    "ConfigurationError",
    "StorageError",
    "MonitoringError",
    "InitializationError",
    "ShutdownError",
    "LifecycleError",
    "MonitorAlreadyRunningError",
    "MonitorNotRunningError",
]
