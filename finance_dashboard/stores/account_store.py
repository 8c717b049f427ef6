"""
Account Store

CRUD over the flat account collection, always scoped to the session
user of the SessionStore it was built with.

DESIGN DECISION: Currency and country are not user-controlled.
- add_account forces both to the default locale
- update_account re-forces the currency and keeps an existing country
- get_accounts backfills either field when a stored record lacks it
Records stored under another locale are NOT converted on read; they
are returned as stored and can be spotted with Account.uses_locale().

Every mutation is a read-modify-write over a fresh snapshot and is
checked in full before the single write, so a rejected call leaves
storage untouched.
"""

from typing import Any, Callable, Mapping, Optional, Union
from uuid import uuid4

from finance_dashboard.audit import AuditLogger
from finance_dashboard.errors import (
    FinanceDashboardError,
    NotAuthenticatedError,
    NotFoundError,
)
from finance_dashboard.models.account import (
    Account,
    AccountCreate,
    AccountUpdate,
    CategorizationResult,
    CountryInfo,
)
from finance_dashboard.models.user import User
from finance_dashboard.stores.ownership import AccountCollection, load_index
from finance_dashboard.stores.persistence import write_batch
from finance_dashboard.stores.session_store import SessionStore
from finance_dashboard.validation import InputValidator


NOT_FOUND_MESSAGE = "Account not found or not owned by user."


def new_account_id() -> str:
    return uuid4().hex


class AccountStore:
    """Account CRUD for the current session user."""

    def __init__(
        self,
        sessions: SessionStore,
        default_country: Optional[CountryInfo] = None,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_factory: Callable[[], str] = new_account_id,
    ):
        self._sessions = sessions
        self._storage = sessions.storage
        self._keys = sessions.keys
        self._country = default_country or CountryInfo.from_settings()
        self._validator = validator or InputValidator()
        self._audit = audit_logger or AuditLogger()
        self._new_id = id_factory

    @property
    def default_country(self) -> CountryInfo:
        return self._country

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _actor(self) -> Optional[str]:
        user = self._sessions.get_current_user()
        return user.username if user else None

    def _require_user(self) -> User:
        user = self._sessions.get_current_user()
        if user is None:
            raise NotAuthenticatedError("User not authenticated")
        return user

    def _with_locale_defaults(self, account: Account) -> Account:
        if account.currency_code and account.country:
            return account
        return account.model_copy(update={
            "currency_code": account.currency_code or self._country.currency_code,
            "country": account.country or self._country.code,
        })

    def _load(self) -> tuple[AccountCollection, dict[str, list[str]]]:
        collection = AccountCollection.load(self._storage, self._keys)
        return collection, load_index(self._storage, self._keys, collection)

    async def _save(
        self,
        operation: str,
        collection: AccountCollection,
        index: dict[str, list[str]],
    ) -> None:
        await write_batch(self._storage, self._audit, operation, {
            self._keys.bank_accounts: collection.dump(),
            self._keys.account_index: index,
        })

    def _find_owned(
        self,
        collection: AccountCollection,
        account_id: str,
        username: str,
    ) -> int:
        position = collection.find_owned(account_id, username)
        if position < 0:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return position

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_accounts(self) -> list[Account]:
        """
        All accounts owned by the session user, in storage order.

        Returns an empty list when nobody is logged in.
        """
        user = self._sessions.get_current_user()
        if user is None:
            return []

        collection = AccountCollection.load(self._storage, self._keys)
        return [
            self._with_locale_defaults(account)
            for account in collection
            if account.user_id == user.username
        ]

    async def get_account(self, account_id: str) -> Account:
        """
        One account owned by the session user.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            NotFoundError: If no such account is owned by the session user
        """
        user = self._require_user()
        collection, _ = self._load()
        position = self._find_owned(collection, account_id, user.username)
        return self._with_locale_defaults(collection.get(position))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_account(
        self,
        data: Union[AccountCreate, Mapping[str, Any]],
    ) -> Account:
        """
        Create an account for the session user.

        Currency and country are forced to the default locale whatever
        the payload says.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            ValidationError: If the payload is malformed
        """
        try:
            user = self._require_user()
            payload = self._validator.parse(AccountCreate, data)
        except FinanceDashboardError as e:
            await self._audit.log_rejected("add_account", e)
            raise

        fields = payload.model_dump(exclude={"currency_code", "country"})
        account = Account(
            **fields,
            id=self._new_id(),
            user_id=user.username,
            currency_code=self._country.currency_code,
            country=self._country.code,
        )

        collection, index = self._load()
        collection.append(account)
        index.setdefault(user.username, []).append(account.id)
        await self._save("add_account", collection, index)

        await self._audit.log_account_created(account)
        return account

    async def update_account(
        self,
        account_id: str,
        updates: Union[AccountUpdate, Mapping[str, Any]],
    ) -> Account:
        """
        Shallow-merge `updates` over an owned account.

        Only fields present in `updates` change. The currency is always
        reset to the default locale and an existing country is kept, so
        neither can be changed through here. `id` and `user_id` are
        never changed.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            NotFoundError: If no such account is owned by the session user
            ValidationError: If the updates are malformed
        """
        try:
            user = self._require_user()
            patch = self._validator.parse(AccountUpdate, updates)
            collection, index = self._load()
            position = self._find_owned(collection, account_id, user.username)
            existing = collection.get(position)

            changes = patch.model_dump(exclude_unset=True)
            merged = {**existing.model_dump(), **changes}
            merged["id"] = existing.id
            merged["user_id"] = existing.user_id
            merged["currency_code"] = self._country.currency_code
            merged["country"] = existing.country or self._country.code
            updated = self._validator.parse(Account, merged)
        except FinanceDashboardError as e:
            await self._audit.log_rejected("update_account", e, actor=self._actor())
            raise

        collection.replace(position, updated)
        await self._save("update_account", collection, index)

        await self._audit.log_account_updated(updated, sorted(changes))
        return updated

    async def set_category(
        self,
        account_id: str,
        result: CategorizationResult,
    ) -> Account:
        """Store a categorization result the user chose to keep."""
        account = await self.update_account(account_id, {
            "category": result.category,
            "category_confidence": result.confidence,
        })
        await self._audit.log_account_categorized(account)
        return account

    async def delete_account(self, account_id: str) -> None:
        """
        Delete an owned account.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            NotFoundError: If no such account is owned by the session user
        """
        try:
            user = self._require_user()
            collection, index = self._load()
            initial_length = len(collection)
            collection.remove_owned(account_id, user.username)
            if len(collection) == initial_length:
                raise NotFoundError(NOT_FOUND_MESSAGE)
        except FinanceDashboardError as e:
            await self._audit.log_rejected("delete_account", e, actor=self._actor())
            raise

        owned_ids = [
            owned_id for owned_id in index.get(user.username, [])
            if owned_id != account_id
        ]
        if owned_ids:
            index[user.username] = owned_ids
        else:
            index.pop(user.username, None)
        await self._save("delete_account", collection, index)

        await self._audit.log_account_deleted(user.username, account_id)

