"""
JSON File Storage Implementation

DESIGN DECISION: The "local storage" of this system is a single JSON
file holding a flat object of {key: json_encoded_value}, the same
layout browser local storage uses.

TRADEOFFS:
- Every operation reads the whole file (fine for one user's accounts)
- No locking: two processes writing the same file race, last write wins
- Writes go to a temporary file that is renamed over the target, so a
  crash mid-write never leaves a truncated file behind
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_dashboard.services.storage.interface import (
    EncodedKeyValueStorage,
    StorageCorruptedError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JSONFileStorage(EncodedKeyValueStorage):
    """
    Key-value storage backed by a JSON file on disk.

    The file is created on first write. A missing file reads as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        if not text.strip():
            return {}

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageCorruptedError(f"{self._path} is not valid JSON: {e}")

        if not isinstance(raw, dict) or not all(
            isinstance(value, str) for value in raw.values()
        ):
            raise StorageCorruptedError(
                f"{self._path} does not hold a key-value mapping"
            )
        return raw

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_file(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _dump_raw(self, raw: dict[str, str]) -> None:
        payload = json.dumps(raw, ensure_ascii=False, indent=2, sort_keys=True)
        try:
            self._write_file(payload)
        except OSError as e:
            logger.error("storage_write_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to write {self._path}: {e}")
