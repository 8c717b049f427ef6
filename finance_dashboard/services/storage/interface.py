"""
Abstract Key-Value Storage Interface

DESIGN DECISION: All persistence goes through a tiny key-value
interface (get/set/remove by string key, JSON-encoded values), the
same shape as browser local storage. This allows us to:
1. Keep the stores independent of where bytes end up
2. Use in-memory storage for testing
3. Swap the JSON file for something else later

Values are encoded to JSON strings on write and decoded on read, so a
caller never holds a live reference into the store. Every read returns
a fresh snapshot.

The interface is synchronous. Local storage is not actually async; the
stores built on top expose async operations for interface uniformity.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional

import structlog


logger = structlog.get_logger(__name__)


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for key-value storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[Any]:
        """
        Read and decode a value.

        Args:
            key: The storage key

        Returns:
            The decoded value, or None if the key is absent or its
            stored value cannot be decoded
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: Any) -> None:
        """
        Encode and store a value, replacing any previous value.

        Raises:
            StorageError: If the value cannot be encoded or written
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass

    @abstractmethod
    def write_batch(
        self,
        updates: Mapping[str, Any],
        removals: Iterable[str] = (),
    ) -> None:
        """
        Apply several writes and removals as one write.

        Either every change lands or none does.

        Raises:
            StorageError: If any value cannot be encoded or the write fails
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass


class EncodedKeyValueStorage(KeyValueStorageInterface):
    """
    Base for backends that hold a flat {key: json_string} mapping.

    Subclasses only load and dump the raw mapping; encoding, decoding
    and batching live here.
    """

    @abstractmethod
    def _load_raw(self) -> dict[str, str]:
        """Load the full raw mapping (a copy the caller may mutate)."""
        pass

    @abstractmethod
    def _dump_raw(self, raw: dict[str, str]) -> None:
        """Persist the full raw mapping."""
        pass

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot encode value for key {key!r}: {e}")

    def get_item(self, key: str) -> Optional[Any]:
        encoded = self._load_raw().get(key)
        if encoded is None:
            return None
        try:
            return json.loads(encoded)
        except json.JSONDecodeError as e:
            # An unreadable value is treated as absent
            logger.warning("storage_decode_failed", key=key, error=str(e))
            return None

    def set_item(self, key: str, value: Any) -> None:
        self.write_batch({key: value})

    def remove_item(self, key: str) -> None:
        self.write_batch({}, removals=[key])

    def write_batch(
        self,
        updates: Mapping[str, Any],
        removals: Iterable[str] = (),
    ) -> None:
        # Encode everything before touching the stored mapping
        encoded = {key: self._encode(key, value) for key, value in updates.items()}
        raw = self._load_raw()
        for key in removals:
            raw.pop(key, None)
        raw.update(encoded)
        self._dump_raw(raw)

    def keys(self) -> list[str]:
        return list(self._load_raw().keys())


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptedError(StorageError):
    """The backing store exists but cannot be read as a key-value mapping."""
    pass
