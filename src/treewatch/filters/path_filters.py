"""
Path filters deciding which paths an observer scans.

A filter is any callable taking a provider path and returning True to keep
it. The helpers here build and combine the common ones.
"""

import fnmatch
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from treewatch.core.interfaces import IStorageProvider

if TYPE_CHECKING:
    from treewatch.config.settings import WatcherConfig

PathFilter = Callable[[Any], bool]


def all_of(*filters: PathFilter) -> PathFilter:
    """Accept a path only if every filter accepts it."""

    def accept(path: Any) -> bool:
        return all(f(path) for f in filters)

    return accept


def any_of(*filters: PathFilter) -> PathFilter:
    """Accept a path if at least one filter accepts it."""

    def accept(path: Any) -> bool:
        return any(f(path) for f in filters)

    return accept


def negate(path_filter: PathFilter) -> PathFilter:
    """Invert a filter."""

    def accept(path: Any) -> bool:
        return not path_filter(path)

    return accept


def directories(storage: IStorageProvider) -> PathFilter:
    """Accept directories only."""
    return storage.is_directory


def files(storage: IStorageProvider) -> PathFilter:
    """Accept everything that is not a directory."""
    return negate(storage.is_directory)


def visible(storage: IStorageProvider) -> PathFilter:
    """Reject hidden paths as reported by the storage provider."""
    return negate(storage.is_hidden)


def suffixes(*extensions: str, storage: IStorageProvider | None = None) -> PathFilter:
    """Accept paths whose name ends with one of the given extensions (case-insensitive)."""
    normalized = tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions)

    def accept(path: Any) -> bool:
        name = storage.name(path) if storage else str(path)
        return name.lower().endswith(normalized)

    return accept


def exclude_patterns(patterns: Iterable[str], storage: IStorageProvider | None = None) -> PathFilter:
    """Reject paths whose full path or name matches one of the fnmatch patterns."""
    patterns = list(patterns)

    def accept(path: Any) -> bool:
        path_str = str(path)
        name = storage.name(path) if storage else path_str.rstrip("/").rsplit("/", 1)[-1]
        return not any(fnmatch.fnmatch(path_str, p) or fnmatch.fnmatch(name, p) for p in patterns)

    return accept


def build_filter_from_config(config: "WatcherConfig", storage: IStorageProvider) -> PathFilter | None:
    """
    Build the filter described by the configuration.

    Args:
        config: Watcher configuration
        storage: Provider used to check hidden paths

    Returns:
        The combined filter, or None when the configuration filters nothing
    """
    filters: list[PathFilter] = []
    if not config.include_hidden:
        filters.append(visible(storage))
    if config.ignored_patterns:
        filters.append(negate(config.should_ignore_path))

    if not filters:
        return None
    if len(filters) == 1:
        return filters[0]
    return all_of(*filters)
