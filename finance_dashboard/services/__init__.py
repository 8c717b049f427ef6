"""Services package."""

from finance_dashboard.services.categorization import (
    AccountCategorizerInterface,
    CategorizationError,
    GeminiAccountCategorizer,
)
from finance_dashboard.services.storage import (
    InMemoryStorage,
    JSONFileStorage,
    KeyValueStorageInterface,
    StorageCorruptedError,
    StorageError,
    StorageKeys,
)

__all__ = [
    # Categorization
    "AccountCategorizerInterface",
    "CategorizationError",
    "GeminiAccountCategorizer",
    # Storage
    "InMemoryStorage",
    "JSONFileStorage",
    "KeyValueStorageInterface",
    "StorageCorruptedError",
    "StorageError",
    "StorageKeys",
]
