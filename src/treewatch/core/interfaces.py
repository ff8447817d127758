"""
Abstract interfaces for the treewatch polling monitor.

These interfaces define the contracts at the edges of the diff engine: the
storage backend it scans and the listeners it notifies.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from treewatch.models import FileMetadata

if TYPE_CHECKING:
    from treewatch.monitoring.observer import FileAlterationObserver

ROOT_NAME = "/"


class IStorageProvider(ABC):
    """
    Interface for hierarchical storage backends.

    Paths are opaque to the diff engine: they are only handed back to the
    provider, compared by name and passed on to listeners.
    """

    @abstractmethod
    def exists(self, path: Any) -> bool:
        """Check whether the path exists."""
        pass

    @abstractmethod
    def is_directory(self, path: Any) -> bool:
        """Check whether the path is a directory. Only meaningful if it exists."""
        pass

    @abstractmethod
    def last_modified_time(self, path: Any) -> int:
        """
        Get the modification time of the path in nanoseconds.

        Returns:
            The modification time, or 0 when it cannot be read
        """
        pass

    @abstractmethod
    def size(self, path: Any) -> int:
        """Get the size of a file in bytes. Only meaningful for existing files."""
        pass

    @abstractmethod
    def list_children(self, path: Any) -> Iterable[Any]:
        """
        List the direct children of a directory, in any order.

        Args:
            path: Directory to list

        Returns:
            The child paths

        Raises:
            StorageError: If the directory cannot be listed
        """
        pass

    def is_hidden(self, path: Any) -> bool:
        """Check whether the path is hidden. Dot-files are hidden by default."""
        return self.name(path).startswith(".")

    def name(self, path: Any) -> str:
        """Get the last segment of the path, or the root sentinel if it has none."""
        return PurePath(str(path)).name or ROOT_NAME

    def to_path(self, raw: Any) -> Any:
        """Convert a user supplied path (usually a string) into a provider path."""
        return raw

    def get_metadata(self, path: Any) -> FileMetadata:
        """Collect the metadata used for change detection in one call."""
        if not self.exists(path):
            return FileMetadata.missing()
        directory = self.is_directory(path)
        return FileMetadata(
            exists=True,
            is_directory=directory,
            last_modified=self.last_modified_time(path),
            size=0 if directory else self.size(path),
        )


class IFileAlterationListener(ABC):
    """Interface for receiving the events fired by an observer."""

    @abstractmethod
    def on_start(self, observer: "FileAlterationObserver") -> None:
        """Called before an observer starts checking its tree."""
        pass

    @abstractmethod
    def on_directory_create(self, directory: Any) -> None:
        """Called when a directory appeared."""
        pass

    @abstractmethod
    def on_directory_change(self, directory: Any) -> None:
        """Called when a directory's metadata changed."""
        pass

    @abstractmethod
    def on_directory_delete(self, directory: Any) -> None:
        """Called when a directory disappeared."""
        pass

    @abstractmethod
    def on_file_create(self, file: Any) -> None:
        """Called when a file appeared."""
        pass

    @abstractmethod
    def on_file_change(self, file: Any) -> None:
        """Called when a file's metadata changed."""
        pass

    @abstractmethod
    def on_file_delete(self, file: Any) -> None:
        """Called when a file disappeared."""
        pass

    @abstractmethod
    def on_stop(self, observer: "FileAlterationObserver") -> None:
        """Called after an observer finished checking its tree."""
        pass
