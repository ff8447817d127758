"""Core snapshot model and the contracts around it."""

from treewatch.core.entry import FileEntry
from treewatch.core.interfaces import ROOT_NAME, IFileAlterationListener, IStorageProvider

__all__ = [
    "FileEntry",
    "IFileAlterationListener",
    "IStorageProvider",
    "ROOT_NAME",
]
