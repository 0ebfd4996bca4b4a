"""Whole-file JSON persistence behind a small repository abstraction."""

from .backends import InMemoryStorage, JsonFileStorage, StorageBackend
from .repository import JsonRepository
from .store import RecordStore

__all__ = [
    "InMemoryStorage",
    "JsonFileStorage",
    "JsonRepository",
    "RecordStore",
    "StorageBackend",
]
