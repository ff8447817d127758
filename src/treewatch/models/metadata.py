"""
Data models for path metadata and alteration events.

These models carry what a storage provider reports about one path and what
an observer reports to its listeners after diffing two snapshots.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChangeType(str, Enum):
    """Kind of alteration detected between two snapshots."""

    CREATED = "created"
    CHANGED = "changed"
    DELETED = "deleted"


class FileMetadata(BaseModel):
    """
    Metadata captured for one path during a scan.

    Only existence, directory-ness, modification time and size take part in
    change detection; contents are never compared.
    """

    exists: bool = Field(default=False, description="Whether the path existed when inspected")
    is_directory: bool = Field(default=False, description="Whether the path is a directory")
    last_modified: int = Field(default=0, ge=0, description="Modification time in nanoseconds, 0 if unknown")
    size: int = Field(default=0, ge=0, description="Size in bytes, 0 for directories")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode='before')
    @classmethod
    def normalize_missing_and_directories(cls, data):
        """Zero out fields that carry no meaning for the path's state."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get('exists', False):
            data.update(is_directory=False, last_modified=0, size=0)
        elif data.get('is_directory', False):
            data['size'] = 0
        return data

    @classmethod
    def missing(cls) -> "FileMetadata":
        """Metadata for a path that does not exist."""
        return cls()


class FileAlterationEvent(BaseModel):
    """A single create, change or delete notification for one path."""

    change_type: ChangeType = Field(..., description="Kind of alteration")
    path: Any = Field(..., description="Path as handed out by the storage provider")
    is_directory: bool = Field(default=False, description="Whether the path is a directory")
    observed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the observer reported the alteration",
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __str__(self) -> str:
        kind = "directory" if self.is_directory else "file"
        return f"{kind} {self.change_type.value}: {self.path}"
