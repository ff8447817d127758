"""Polling change detection for directory trees on any storage backend."""

from treewatch.config import WatcherConfig, get_config
from treewatch.core import FileEntry, IFileAlterationListener, IStorageProvider
from treewatch.monitoring import (
    EventRecorder,
    FileAlterationListenerAdaptor,
    FileAlterationMonitor,
    FileAlterationObserver,
    LoggingListener,
)
from treewatch.storage import InMemoryStorageProvider, LocalStorageProvider

__version__ = "0.1.0"

__all__ = [
    "EventRecorder",
    "FileAlterationListenerAdaptor",
    "FileAlterationMonitor",
    "FileAlterationObserver",
    "FileEntry",
    "IFileAlterationListener",
    "IStorageProvider",
    "InMemoryStorageProvider",
    "LocalStorageProvider",
    "LoggingListener",
    "WatcherConfig",
    "get_config",
]
