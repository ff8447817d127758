"""
Ready-made listeners for observer events.

Includes a no-op adaptor to subclass, a logging listener, a thread-safe
event recorder and a bridge feeding watchdog event handlers.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileSystemEventHandler,
)

from treewatch.core.interfaces import IFileAlterationListener
from treewatch.models import ChangeType, FileAlterationEvent

if TYPE_CHECKING:
    from treewatch.monitoring.observer import FileAlterationObserver

logger = logging.getLogger(__name__)


class FileAlterationListenerAdaptor(IFileAlterationListener):
    """Listener that ignores every event; override only what you need."""

    def on_start(self, observer: "FileAlterationObserver") -> None:
        pass

    def on_directory_create(self, directory: Any) -> None:
        pass

    def on_directory_change(self, directory: Any) -> None:
        pass

    def on_directory_delete(self, directory: Any) -> None:
        pass

    def on_file_create(self, file: Any) -> None:
        pass

    def on_file_change(self, file: Any) -> None:
        pass

    def on_file_delete(self, file: Any) -> None:
        pass

    def on_stop(self, observer: "FileAlterationObserver") -> None:
        pass


class LoggingListener(FileAlterationListenerAdaptor):
    """Logs every alteration; scan boundaries are logged at DEBUG."""

    def __init__(self, level: int = logging.INFO, log: logging.Logger | None = None):
        self.level = level
        self.log = log or logger

    def on_start(self, observer: "FileAlterationObserver") -> None:
        self.log.debug("Scan started on %s", observer.directory)

    def on_directory_create(self, directory: Any) -> None:
        self.log.log(self.level, "Directory created: %s", directory)

    def on_directory_change(self, directory: Any) -> None:
        self.log.log(self.level, "Directory changed: %s", directory)

    def on_directory_delete(self, directory: Any) -> None:
        self.log.log(self.level, "Directory deleted: %s", directory)

    def on_file_create(self, file: Any) -> None:
        self.log.log(self.level, "File created: %s", file)

    def on_file_change(self, file: Any) -> None:
        self.log.log(self.level, "File changed: %s", file)

    def on_file_delete(self, file: Any) -> None:
        self.log.log(self.level, "File deleted: %s", file)

    def on_stop(self, observer: "FileAlterationObserver") -> None:
        self.log.debug("Scan finished on %s", observer.directory)


class EventRecorder(FileAlterationListenerAdaptor):
    """
    Collects events as FileAlterationEvent records.

    Safe to read from another thread while a monitor is notifying it.
    """

    def __init__(self, record_scans: bool = False):
        """
        Initialize the recorder.

        Args:
            record_scans: Also count on_start/on_stop calls
        """
        self.record_scans = record_scans
        self._lock = threading.Lock()
        self._events: list[FileAlterationEvent] = []
        self.scans_started = 0
        self.scans_finished = 0

    def _record(self, change_type: ChangeType, path: Any, is_directory: bool) -> None:
        event = FileAlterationEvent(change_type=change_type, path=path, is_directory=is_directory)
        with self._lock:
            self._events.append(event)

    def on_start(self, observer: "FileAlterationObserver") -> None:
        if self.record_scans:
            with self._lock:
                self.scans_started += 1

    def on_directory_create(self, directory: Any) -> None:
        self._record(ChangeType.CREATED, directory, True)

    def on_directory_change(self, directory: Any) -> None:
        self._record(ChangeType.CHANGED, directory, True)

    def on_directory_delete(self, directory: Any) -> None:
        self._record(ChangeType.DELETED, directory, True)

    def on_file_create(self, file: Any) -> None:
        self._record(ChangeType.CREATED, file, False)

    def on_file_change(self, file: Any) -> None:
        self._record(ChangeType.CHANGED, file, False)

    def on_file_delete(self, file: Any) -> None:
        self._record(ChangeType.DELETED, file, False)

    def on_stop(self, observer: "FileAlterationObserver") -> None:
        if self.record_scans:
            with self._lock:
                self.scans_finished += 1

    @property
    def events(self) -> list[FileAlterationEvent]:
        """A copy of the recorded events in firing order."""
        with self._lock:
            return list(self._events)

    def paths(self, change_type: ChangeType, is_directory: bool | None = None) -> list[Any]:
        """Paths of the recorded events of one type, optionally only files or directories."""
        return [
            event.path
            for event in self.events
            if event.change_type == change_type and (is_directory is None or event.is_directory == is_directory)
        ]

    @property
    def created_directories(self) -> list[Any]:
        return self.paths(ChangeType.CREATED, is_directory=True)

    @property
    def changed_directories(self) -> list[Any]:
        return self.paths(ChangeType.CHANGED, is_directory=True)

    @property
    def deleted_directories(self) -> list[Any]:
        return self.paths(ChangeType.DELETED, is_directory=True)

    @property
    def created_files(self) -> list[Any]:
        return self.paths(ChangeType.CREATED, is_directory=False)

    @property
    def changed_files(self) -> list[Any]:
        return self.paths(ChangeType.CHANGED, is_directory=False)

    @property
    def deleted_files(self) -> list[Any]:
        return self.paths(ChangeType.DELETED, is_directory=False)

    def drain(self) -> list[FileAlterationEvent]:
        """Return the recorded events and forget them."""
        with self._lock:
            events, self._events = self._events, []
        return events

    def clear(self) -> None:
        """Forget all recorded events and scan counts."""
        with self._lock:
            self._events = []
            self.scans_started = 0
            self.scans_finished = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class WatchdogEventBridge(FileAlterationListenerAdaptor):
    """
    Forwards alterations to a watchdog event handler.

    Lets handlers written for watchdog observers consume the results of a
    polling scan, e.g. on storage where native notifications do not exist.
    Paths are converted with ``str``.
    """

    def __init__(self, handler: FileSystemEventHandler):
        self.handler = handler

    def _dispatch(self, event) -> None:
        logger.debug("Dispatching %s to %s", event, self.handler)
        self.handler.dispatch(event)

    def on_directory_create(self, directory: Any) -> None:
        self._dispatch(DirCreatedEvent(str(directory)))

    def on_directory_change(self, directory: Any) -> None:
        self._dispatch(DirModifiedEvent(str(directory)))

    def on_directory_delete(self, directory: Any) -> None:
        self._dispatch(DirDeletedEvent(str(directory)))

    def on_file_create(self, file: Any) -> None:
        self._dispatch(FileCreatedEvent(str(file)))

    def on_file_change(self, file: Any) -> None:
        self._dispatch(FileModifiedEvent(str(file)))

    def on_file_delete(self, file: Any) -> None:
        self._dispatch(FileDeletedEvent(str(file)))
