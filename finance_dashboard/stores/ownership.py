"""
Account Collection and Ownership Index

The account collection is one flat list holding every user's accounts.
Next to it lives an ownership index (username -> account ids) that is
written in the same batch as the collection, so the two never diverge
through this code.

Entries that fail to parse are kept as raw dicts in their original
position and written back untouched.
"""

from typing import Any, Iterator, Optional, Union

import pydantic
import structlog

from finance_dashboard.models.account import Account
from finance_dashboard.services.storage import KeyValueStorageInterface, StorageKeys


logger = structlog.get_logger(__name__)


class AccountCollection:
    """In-memory snapshot of the full (unscoped) account collection."""

    def __init__(self, entries: Optional[list[Union[Account, dict]]] = None):
        self._entries: list[Union[Account, dict]] = list(entries or [])

    @classmethod
    def load(
        cls,
        storage: KeyValueStorageInterface,
        keys: StorageKeys,
    ) -> "AccountCollection":
        raw = storage.get_item(keys.bank_accounts)
        if not isinstance(raw, list):
            return cls()

        entries: list[Union[Account, dict]] = []
        for item in raw:
            try:
                entries.append(Account.model_validate(item))
            except pydantic.ValidationError as e:
                logger.warning(
                    "unreadable_account_record",
                    record_id=item.get("id") if isinstance(item, dict) else None,
                    error=str(e),
                )
                entries.append(item)
        return cls(entries)

    def dump(self) -> list[Any]:
        return [
            entry.model_dump(mode="json", by_alias=True) if isinstance(entry, Account) else entry
            for entry in self._entries
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Account]:
        return (entry for entry in self._entries if isinstance(entry, Account))

    def find_owned(self, account_id: str, username: str) -> int:
        """Position of the account with this id and owner, or -1."""
        for position, entry in enumerate(self._entries):
            if (
                isinstance(entry, Account)
                and entry.id == account_id
                and entry.user_id == username
            ):
                return position
        return -1

    def get(self, position: int) -> Account:
        entry = self._entries[position]
        if not isinstance(entry, Account):
            raise TypeError(f"Entry at {position} is an unreadable record")
        return entry

    def replace(self, position: int, account: Account) -> None:
        self._entries[position] = account

    def append(self, account: Account) -> None:
        self._entries.append(account)

    def remove_owned(self, account_id: str, username: str) -> None:
        self._entries = [
            entry for entry in self._entries
            if not (
                isinstance(entry, Account)
                and entry.id == account_id
                and entry.user_id == username
            )
        ]

    def rename_owner(self, old_username: str, new_username: str) -> int:
        """Move every account of `old_username` to `new_username`."""
        migrated = 0
        for position, entry in enumerate(self._entries):
            if isinstance(entry, Account) and entry.user_id == old_username:
                self._entries[position] = entry.model_copy(
                    update={"user_id": new_username}
                )
                migrated += 1
        return migrated


def build_index(collection: AccountCollection) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for account in collection:
        index.setdefault(account.user_id, []).append(account.id)
    return index


def load_index(
    storage: KeyValueStorageInterface,
    keys: StorageKeys,
    collection: AccountCollection,
) -> dict[str, list[str]]:
    """
    Load the ownership index.

    The collection is authoritative. A stored index that is missing,
    malformed or out of step with it (records written before the index
    existed, or by another writer) is rebuilt from the collection.
    """
    expected = build_index(collection)
    raw = storage.get_item(keys.account_index)
    if isinstance(raw, dict) and all(
        isinstance(ids, list) for ids in raw.values()
    ):
        stored = {username: list(ids) for username, ids in raw.items() if ids}
        if _same_owners(stored, expected):
            return stored
        logger.warning("account_index_rebuilt", reason="stale")
    return expected


def _same_owners(
    stored: dict[str, list[str]],
    expected: dict[str, list[str]],
) -> bool:
    if stored.keys() != expected.keys():
        return False
    return all(set(stored[name]) == set(ids) for name, ids in expected.items())
