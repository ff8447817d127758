"""
In-memory storage provider.

Emulates an object-storage backed filesystem: a flat map of keys to objects
with directory markers. Modification times come from a logical clock so scans
are deterministic, which makes the provider the workhorse of the test suite.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from treewatch.core.interfaces import IStorageProvider
from treewatch.models.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class _StoredObject:
    """One object or directory marker held by the provider."""

    is_directory: bool
    last_modified: int
    data: bytes = b""


class InMemoryStorageProvider(IStorageProvider):
    """
    Thread-safe, in-memory storage provider.

    Paths are absolute ``PurePosixPath`` objects. The root ``/`` always exists.
    Creating or removing an object bumps the modification time of its parent
    directory, like a POSIX filesystem does.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._clock = 0
        self._objects: dict[PurePosixPath, _StoredObject] = {}
        self._failing: dict[PurePosixPath, Exception] = {}
        self._objects[PurePosixPath("/")] = _StoredObject(is_directory=True, last_modified=self._tick())

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def to_path(self, raw: Any) -> PurePosixPath:
        path = PurePosixPath(str(raw))
        if not path.is_absolute():
            path = PurePosixPath("/") / path
        return path

    # === IStorageProvider ===

    def exists(self, path: Any) -> bool:
        with self._lock:
            return self.to_path(path) in self._objects

    def is_directory(self, path: Any) -> bool:
        with self._lock:
            stored = self._objects.get(self.to_path(path))
            return stored is not None and stored.is_directory

    def last_modified_time(self, path: Any) -> int:
        with self._lock:
            stored = self._objects.get(self.to_path(path))
            return stored.last_modified if stored else 0

    def size(self, path: Any) -> int:
        with self._lock:
            stored = self._objects.get(self.to_path(path))
            return len(stored.data) if stored and not stored.is_directory else 0

    def list_children(self, path: Any) -> list[PurePosixPath]:
        path = self.to_path(path)
        with self._lock:
            if path in self._failing:
                error = self._failing[path]
                raise StorageError(
                    f"Cannot list directory {path}: {error}",
                    path=str(path),
                    operation="list_children",
                    underlying_error=error,
                )
            stored = self._objects.get(path)
            if stored is None or not stored.is_directory:
                raise StorageError(f"Not a directory: {path}", path=str(path), operation="list_children")
            return [key for key in self._objects if key != path and key.parent == path]

    # === Mutation API ===

    def mkdir(self, path: Any, parents: bool = True) -> PurePosixPath:
        """Create a directory marker, optionally with its missing parents."""
        path = self.to_path(path)
        with self._lock:
            stored = self._objects.get(path)
            if stored is not None:
                if not stored.is_directory:
                    raise StorageError(f"Object exists and is not a directory: {path}", path=str(path), operation="mkdir")
                return path
            self._ensure_parent(path, parents, "mkdir")
            self._objects[path] = _StoredObject(is_directory=True, last_modified=self._tick())
            self._bump_parent(path)
        return path

    def write(self, path: Any, data: bytes | str = b"", parents: bool = True) -> PurePosixPath:
        """Create or overwrite an object with the given content."""
        path = self.to_path(path)
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._lock:
            stored = self._objects.get(path)
            if stored is not None and stored.is_directory:
                raise StorageError(f"Cannot write to directory: {path}", path=str(path), operation="write")
            if stored is None:
                self._ensure_parent(path, parents, "write")
                self._objects[path] = _StoredObject(is_directory=False, last_modified=self._tick(), data=data)
                self._bump_parent(path)
            else:
                stored.data = data
                stored.last_modified = self._tick()
        return path

    def touch(self, path: Any) -> PurePosixPath:
        """Create an empty object or bump the modification time of an existing one."""
        path = self.to_path(path)
        with self._lock:
            stored = self._objects.get(path)
            if stored is None:
                return self.write(path)
            stored.last_modified = self._tick()
        return path

    def remove(self, path: Any) -> None:
        """Remove an object, or a directory together with everything below it."""
        path = self.to_path(path)
        with self._lock:
            if path not in self._objects:
                raise StorageError(f"No such object: {path}", path=str(path), operation="remove")
            if path == PurePosixPath("/"):
                raise StorageError("The root cannot be removed", path=str(path), operation="remove")
            for key in [key for key in self._objects if key == path or path in key.parents]:
                del self._objects[key]
            self._bump_parent(path)

    def fail_listing(self, path: Any, error: Exception | None = None) -> None:
        """Make every listing of ``path`` fail until :meth:`restore_listing` is called."""
        with self._lock:
            self._failing[self.to_path(path)] = error or OSError("simulated listing failure")

    def restore_listing(self, path: Any) -> None:
        """Undo :meth:`fail_listing`."""
        with self._lock:
            self._failing.pop(self.to_path(path), None)

    def _ensure_parent(self, path: PurePosixPath, parents: bool, operation: str) -> None:
        parent = self._objects.get(path.parent)
        if parent is None:
            if not parents:
                raise StorageError(f"Parent directory missing: {path.parent}", path=str(path), operation=operation)
            self.mkdir(path.parent, parents=True)
        elif not parent.is_directory:
            raise StorageError(f"Parent is not a directory: {path.parent}", path=str(path), operation=operation)

    def _bump_parent(self, path: PurePosixPath) -> None:
        parent = self._objects.get(path.parent)
        if parent is not None and path.parent != path:
            parent.last_modified = self._tick()

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def __repr__(self) -> str:
        return f"InMemoryStorageProvider(objects={len(self)})"
