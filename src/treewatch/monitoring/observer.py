"""
Snapshot observer for one watched directory tree.

Keeps the last known tree of FileEntry objects for a root path and, on each
check, diffs it against a fresh listing from the storage provider, firing
create, change and delete events to the registered listeners.
"""

import logging
import threading
from collections.abc import Callable
from operator import itemgetter
from typing import Any

from treewatch.config.settings import ListingErrorPolicy
from treewatch.core.entry import FileEntry
from treewatch.core.interfaces import IFileAlterationListener, IStorageProvider
from treewatch.filters.path_filters import PathFilter
from treewatch.models import FileMetadata
from treewatch.models.exceptions import InitializationError, StorageError
from treewatch.storage.local_storage import LocalStorageProvider

logger = logging.getLogger(__name__)

EntryFactory = Callable[[Any, str, FileEntry | None], FileEntry]

# (name, path) pairs sorted by name
Listing = list[tuple[str, Any]]

_PROVIDER_ERRORS = (StorageError, OSError)


class FileAlterationObserver:
    """
    Observes one directory tree through a storage provider.

    The observer owns its entry tree: only ``initialize`` and
    ``check_and_notify`` touch it, and both run under the observer's scan lock.
    Listeners are held in a tuple that is replaced on every add/remove, so a
    running check keeps notifying the listeners it started with.
    """

    def __init__(
        self,
        root: Any,
        storage: IStorageProvider | None = None,
        path_filter: PathFilter | None = None,
        entry_factory: EntryFactory | None = None,
        listing_error_policy: ListingErrorPolicy | str = ListingErrorPolicy.EMPTY,
    ):
        """
        Initialize the observer.

        Args:
            root: Directory to observe, as a provider path or a plain string
            storage: Storage provider to scan (local filesystem if not provided)
            path_filter: Optional predicate; rejected paths are never listed
            entry_factory: Optional ``(path, name, parent)`` constructor for entries
            listing_error_policy: How a directory that cannot be listed is treated
        """
        if root is None:
            raise ValueError("Root directory is missing")

        self._storage = storage or LocalStorageProvider()
        self._path_filter = path_filter
        self._entry_factory = entry_factory
        self._listing_error_policy = ListingErrorPolicy(listing_error_policy)

        self._root_entry = self._new_entry(self._storage.to_path(root), None)

        self._listeners: tuple[IFileAlterationListener, ...] = ()
        self._listeners_lock = threading.Lock()
        self._scan_lock = threading.RLock()

        self._stats = {"scans": 0, "created": 0, "changed": 0, "deleted": 0, "listing_failures": 0}

    @property
    def directory(self) -> Any:
        """The root path being observed."""
        return self._root_entry.path

    @property
    def storage(self) -> IStorageProvider:
        return self._storage

    @property
    def path_filter(self) -> PathFilter | None:
        return self._path_filter

    @property
    def root_entry(self) -> FileEntry:
        return self._root_entry

    @property
    def listeners(self) -> tuple[IFileAlterationListener, ...]:
        """The registered listeners in registration order."""
        return self._listeners

    def add_listener(self, listener: IFileAlterationListener | None) -> None:
        """Register a listener. ``None`` is ignored."""
        if listener is None:
            return
        with self._listeners_lock:
            self._listeners = (*self._listeners, listener)

    def remove_listener(self, listener: IFileAlterationListener | None) -> None:
        """Unregister every registration of a listener. ``None`` is ignored."""
        if listener is None:
            return
        with self._listeners_lock:
            self._listeners = tuple(registered for registered in self._listeners if registered is not listener)

    def initialize(self) -> None:
        """
        Build the baseline snapshot of the observed tree.

        Raises:
            InitializationError: If the root cannot be inspected or listed
        """
        with self._scan_lock:
            root = self._root_entry
            try:
                root.refresh(self._storage.get_metadata(root.path))
                listing = self._list_paths(root.path, strict=True) if root.is_directory else []
            except _PROVIDER_ERRORS as e:
                logger.error("Failed to initialize observer for %s: %s", root.path, e)
                raise InitializationError(
                    f"Cannot inspect observed root: {e}", path=str(root.path), underlying_error=e
                ) from e

            root.children = [self._create_entry(root, name, path) for name, path in listing]
            logger.info(
                "Observer initialized for %s (%d entries)", root.path, sum(1 for _ in root.iter_tree()) - 1
            )

    def destroy(self) -> None:
        """Final processing once the owning monitor stops."""
        logger.debug("Observer for %s destroyed", self._root_entry.path)

    def check_and_notify(self) -> None:
        """
        Check whether the tree has been created, modified or deleted.

        Listing and metadata failures are absorbed per the listing error
        policy. Exceptions raised by listeners propagate.
        """
        with self._scan_lock:
            listeners = self._listeners
            for listener in listeners:
                listener.on_start(self)

            root = self._root_entry
            try:
                root_exists = self._storage.exists(root.path)
            except _PROVIDER_ERRORS as e:
                logger.warning("Cannot inspect observed root %s: %s", root.path, e)
                self._stats["listing_failures"] += 1
                self._check_and_notify(root, root.children, None, listeners)
            else:
                if root_exists:
                    self._check_and_notify(root, root.children, self._list_paths(root.path), listeners)
                elif root.exists:
                    self._check_and_notify(root, root.children, [], listeners)
                # else: did not exist and still does not

                # the root never fires events itself, only its existence is tracked
                root.exists = root_exists

            self._stats["scans"] += 1

            for listener in listeners:
                listener.on_stop(self)

    def _check_and_notify(
        self,
        parent: FileEntry,
        previous: list[FileEntry],
        current: Listing | None,
        listeners: tuple[IFileAlterationListener, ...],
    ) -> None:
        """Merge the name-sorted previous entries with the name-sorted current listing."""
        if current is None:
            if self._listing_error_policy is ListingErrorPolicy.RETAIN:
                return
            current = []

        c = 0
        children: list[FileEntry] = []
        for entry in previous:
            while c < len(current) and current[c][0] < entry.name:
                created = self._create_entry(parent, *current[c])
                self._do_create(created, listeners)
                children.append(created)
                c += 1
            if c < len(current) and current[c][0] == entry.name:
                path = current[c][1]
                self._do_match(entry, path, listeners)
                self._check_and_notify(entry, entry.children, self._list_paths(path), listeners)
                children.append(entry)
                c += 1
            else:
                self._check_and_notify(entry, entry.children, [], listeners)
                self._do_delete(entry, listeners)
        for name, path in current[c:]:
            created = self._create_entry(parent, name, path)
            self._do_create(created, listeners)
            children.append(created)

        parent.children = children

    def _new_entry(self, path: Any, parent: FileEntry | None, name: str | None = None) -> FileEntry:
        if name is None:
            name = self._storage.name(path)
        if self._entry_factory is not None:
            return self._entry_factory(path, name, parent)
        if parent is None:
            return FileEntry(path, name=name)
        return parent.new_child_instance(path, name=name)

    def _create_entry(self, parent: FileEntry, name: str, path: Any) -> FileEntry:
        """Create and refresh an entry for a new path, including its whole subtree."""
        entry = self._new_entry(path, parent, name)
        entry.refresh(self._fetch_metadata(path) or FileMetadata.missing())
        if entry.is_directory:
            listing = self._list_paths(path) or []
            entry.children = [self._create_entry(entry, child_name, child) for child_name, child in listing]
        return entry

    def _fetch_metadata(self, path: Any) -> FileMetadata | None:
        try:
            return self._storage.get_metadata(path)
        except _PROVIDER_ERRORS as e:
            logger.warning("Cannot read metadata of %s: %s", path, e)
            return None

    def _list_paths(self, path: Any, strict: bool = False) -> Listing | None:
        """
        List the accepted children of a directory sorted by name.

        Returns:
            The sorted listing, an empty list for non-directories, or None if
            the listing failed (only when not strict)
        """
        try:
            if not self._storage.is_directory(path):
                return []
            listing = [
                (self._storage.name(child), child)
                for child in self._storage.list_children(path)
                if self._path_filter is None or self._path_filter(child)
            ]
        except _PROVIDER_ERRORS as e:
            if strict:
                raise
            self._stats["listing_failures"] += 1
            logger.warning(
                "Cannot list %s, using the '%s' policy for this scan: %s", path, self._listing_error_policy.value, e
            )
            return None
        listing.sort(key=itemgetter(0))
        return listing

    def _do_create(self, entry: FileEntry, listeners: tuple[IFileAlterationListener, ...]) -> None:
        """Fire create events for an entry, then for its descendants."""
        self._stats["created"] += 1
        for listener in listeners:
            if entry.is_directory:
                listener.on_directory_create(entry.path)
            else:
                listener.on_file_create(entry.path)
        for child in entry.children:
            self._do_create(child, listeners)

    def _do_match(self, entry: FileEntry, path: Any, listeners: tuple[IFileAlterationListener, ...]) -> None:
        """Refresh a matched entry and fire change events if its metadata moved."""
        metadata = self._fetch_metadata(path)
        if metadata is None:
            if self._listing_error_policy is ListingErrorPolicy.RETAIN:
                return
            metadata = FileMetadata.missing()
        if not entry.refresh(metadata):
            return
        self._stats["changed"] += 1
        for listener in listeners:
            if entry.is_directory:
                listener.on_directory_change(path)
            else:
                listener.on_file_change(path)

    def _do_delete(self, entry: FileEntry, listeners: tuple[IFileAlterationListener, ...]) -> None:
        self._stats["deleted"] += 1
        for listener in listeners:
            if entry.is_directory:
                listener.on_directory_delete(entry.path)
            else:
                listener.on_file_delete(entry.path)

    def get_scan_stats(self) -> dict[str, int]:
        """
        Get cumulative scan statistics.

        Returns:
            Number of scans, fired create/change/delete events and absorbed listing failures
        """
        return self._stats.copy()

    def __repr__(self) -> str:
        parts = [f"root='{self.directory}'"]
        if self._path_filter is not None:
            parts.append(f"filter={self._path_filter!r}")
        parts.append(f"listeners={len(self._listeners)}")
        return f"{self.__class__.__name__}[{', '.join(parts)}]"
