"""Path filters for observers."""

from treewatch.filters.path_filters import (
    PathFilter,
    all_of,
    any_of,
    build_filter_from_config,
    directories,
    exclude_patterns,
    files,
    negate,
    suffixes,
    visible,
)

__all__ = [
    "PathFilter",
    "all_of",
    "any_of",
    "negate",
    "directories",
    "files",
    "visible",
    "suffixes",
    "exclude_patterns",
    "build_filter_from_config",
]
