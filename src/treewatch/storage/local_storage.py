"""
Storage provider backed by the local filesystem.

Uses pathlib for listing and os.stat for metadata, so it also works on
mounted network shares where native change notification is unavailable.
"""

import logging
import stat
from pathlib import Path
from typing import Any

from treewatch.core.interfaces import IStorageProvider
from treewatch.models.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalStorageProvider(IStorageProvider):
    """Storage provider for local or mounted directories."""

    def __init__(self, follow_symlinks: bool = True):
        """
        Initialize the provider.

        Args:
            follow_symlinks: Report the target of symbolic links instead of the links
        """
        self.follow_symlinks = follow_symlinks

    def to_path(self, raw: Any) -> Path:
        return Path(raw)

    def exists(self, path: Path) -> bool:
        try:
            path.stat(follow_symlinks=self.follow_symlinks)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise StorageError(f"Cannot inspect {path}: {e}", path=str(path), operation="exists", underlying_error=e) from e
        return True

    def is_directory(self, path: Path) -> bool:
        try:
            return stat.S_ISDIR(path.stat(follow_symlinks=self.follow_symlinks).st_mode)
        except OSError:
            return False

    def last_modified_time(self, path: Path) -> int:
        try:
            return path.stat(follow_symlinks=self.follow_symlinks).st_mtime_ns
        except OSError as e:
            logger.debug("Cannot read modification time of %s: %s", path, e)
            return 0

    def size(self, path: Path) -> int:
        try:
            return path.stat(follow_symlinks=self.follow_symlinks).st_size
        except OSError as e:
            logger.debug("Cannot read size of %s: %s", path, e)
            return 0

    def list_children(self, path: Path) -> list[Path]:
        try:
            return list(path.iterdir())
        except OSError as e:
            raise StorageError(
                f"Cannot list directory {path}: {e}", path=str(path), operation="list_children", underlying_error=e
            ) from e

    def is_hidden(self, path: Path) -> bool:
        if path.name.startswith("."):
            return True
        try:
            attributes = getattr(path.stat(follow_symlinks=self.follow_symlinks), "st_file_attributes", 0)
        except OSError:
            return False
        # Windows only, st_file_attributes is absent elsewhere
        return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))

    def __repr__(self) -> str:
        return f"LocalStorageProvider(follow_symlinks={self.follow_symlinks})"
