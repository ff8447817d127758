"""Configuration management and settings."""

from treewatch.config.settings import (
    ListingErrorPolicy,
    LogLevel,
    WatcherConfig,
    get_config,
    reload_config,
    set_config,
    setup_logging,
)

__all__ = [
    "WatcherConfig",
    "ListingErrorPolicy",
    "LogLevel",
    "get_config",
    "reload_config",
    "set_config",
    "setup_logging",
]
