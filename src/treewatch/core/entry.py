"""
Snapshot node of the watched tree.

A FileEntry keeps the last known metadata of one path together with the
entries of its children, sorted by name.
"""

from collections.abc import Iterator
from pathlib import PurePath
from typing import Any

from treewatch.core.interfaces import ROOT_NAME
from treewatch.models import FileMetadata


class FileEntry:
    """
    Last known state of one path and its children.

    Entries are refreshed in place on every scan; the children list is
    replaced wholesale by the observer's diff.
    """

    def __init__(self, path: Any, parent: "FileEntry | None" = None, name: str | None = None):
        if path is None:
            raise ValueError("Path is missing")
        self.path = path
        self.parent = parent
        self.name = name if name is not None else (PurePath(str(path)).name or ROOT_NAME)
        self.exists = False
        self.is_directory = False
        self.last_modified = 0
        self.size = 0
        self._children: list[FileEntry] = []

    def refresh(self, metadata: FileMetadata) -> bool:
        """
        Refresh the attributes from freshly fetched metadata.

        Args:
            metadata: Current metadata of this entry's path

        Returns:
            True if existence, type, modification time or size changed
        """
        previous = (self.exists, self.is_directory, self.last_modified, self.size)

        self.exists = metadata.exists
        self.is_directory = metadata.exists and metadata.is_directory
        self.last_modified = metadata.last_modified if metadata.exists else 0
        self.size = metadata.size if metadata.exists and not self.is_directory else 0

        return previous != (self.exists, self.is_directory, self.last_modified, self.size)

    def new_child_instance(self, path: Any, name: str | None = None) -> "FileEntry":
        """Create an unrefreshed child entry of the same type."""
        return type(self)(path, parent=self, name=name)

    @property
    def children(self) -> list["FileEntry"]:
        """The child entries sorted by name, empty for files."""
        return self._children

    @children.setter
    def children(self, children: list["FileEntry"] | None) -> None:
        self._children = list(children) if children else []

    @property
    def level(self) -> int:
        """Depth of this entry below the root (the root is level 0)."""
        return 0 if self.parent is None else self.parent.level + 1

    def iter_tree(self) -> Iterator["FileEntry"]:
        """Yield this entry and all its descendants in pre-order."""
        yield self
        for child in self._children:
            yield from child.iter_tree()

    def __repr__(self) -> str:
        kind = "dir" if self.is_directory else "file"
        return f"FileEntry({self.name!r}, {kind}, exists={self.exists}, children={len(self._children)})"
