"""In-memory key-value storage, used by tests and ephemeral sessions."""

from typing import Optional

from finance_dashboard.services.storage.interface import EncodedKeyValueStorage


class InMemoryStorage(EncodedKeyValueStorage):
    """Holds encoded values in a dict owned by this instance."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._raw: dict[str, str] = dict(initial or {})

    def _load_raw(self) -> dict[str, str]:
        return dict(self._raw)

    def _dump_raw(self, raw: dict[str, str]) -> None:
        self._raw = raw

    def clear(self) -> None:
        self._raw = {}
