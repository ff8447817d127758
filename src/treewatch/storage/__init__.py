"""Storage providers the observer can scan."""

from treewatch.storage.local_storage import LocalStorageProvider
from treewatch.storage.memory_storage import InMemoryStorageProvider

__all__ = ["LocalStorageProvider", "InMemoryStorageProvider"]
