"""On-device stores: fast cache and durable offline queue."""

from .cache import (
    FileKeyValueStore,
    KeyValueStore,
    LocalCatalogCache,
    LocalRecordingCache,
    MemoryKeyValueStore,
)
from .offline_queue import FileOfflineQueue

__all__ = [
    "FileKeyValueStore",
    "FileOfflineQueue",
    "KeyValueStore",
    "LocalCatalogCache",
    "LocalRecordingCache",
    "MemoryKeyValueStore",
]
