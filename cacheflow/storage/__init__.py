"""
Storage Layer.

This package handles all data persistence: the SQLite key/value engine, the
TTL-aware response cache built on it, and the configuration file.
"""

from .cache import CacheEntry, CacheStore, KeyValueStore, now_millis
from .config_manager import ConfigManager
from .database import SqliteStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "ConfigManager",
    "KeyValueStore",
    "SqliteStore",
    "now_millis",
]
