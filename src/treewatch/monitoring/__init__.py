"""
Monitoring package for polling change detection.

Observers diff snapshots of a directory tree; the monitor runs them at a
fixed interval in the background and the listeners receive the results.
"""

from .listeners import EventRecorder, FileAlterationListenerAdaptor, LoggingListener, WatchdogEventBridge
from .monitor import FileAlterationMonitor, TaskHandle, TaskSpawner, thread_spawner
from .observer import EntryFactory, FileAlterationObserver

__all__ = [
    "EntryFactory",
    "EventRecorder",
    "FileAlterationListenerAdaptor",
    "FileAlterationMonitor",
    "FileAlterationObserver",
    "LoggingListener",
    "TaskHandle",
    "TaskSpawner",
    "WatchdogEventBridge",
    "thread_spawner",
]
