"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
The JSON file backend is the default; the in-memory one is for tests.
"""

from finance_dashboard.services.storage.interface import (
    EncodedKeyValueStorage,
    KeyValueStorageInterface,
    StorageCorruptedError,
    StorageError,
)
from finance_dashboard.services.storage.json_file import JSONFileStorage
from finance_dashboard.services.storage.keys import StorageKeys
from finance_dashboard.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "EncodedKeyValueStorage",
    "KeyValueStorageInterface",
    # Exceptions
    "StorageCorruptedError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JSONFileStorage",
    # Key layout
    "StorageKeys",
]
