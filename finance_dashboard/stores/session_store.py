"""
Session Store

Tracks the roster of registered users and which single user (if any)
is logged in.

DESIGN DECISION: The session is owned by a SessionStore instance, not
by module state. Account and settings stores receive the SessionStore
they are scoped to. A Session object is created at signup/login and
cleared at logout.

NOTE: Passwords are accepted and length-checked but never stored or
verified. This is mock authentication and must not be mistaken for
real security.
"""

from typing import Optional

import pydantic
import structlog

from finance_dashboard.audit import AuditLogger
from finance_dashboard.errors import (
    DuplicateUsernameError,
    FinanceDashboardError,
    UserNotFoundError,
)
from finance_dashboard.models.user import Session, User
from finance_dashboard.services.storage import KeyValueStorageInterface, StorageKeys
from finance_dashboard.stores.ownership import AccountCollection, load_index
from finance_dashboard.stores.persistence import write_batch
from finance_dashboard.validation import InputValidator


logger = structlog.get_logger(__name__)


class SessionStore:
    """Roster of users plus the current session marker."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        keys: Optional[StorageKeys] = None,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._keys = keys or StorageKeys()
        self._validator = validator or InputValidator()
        self._audit = audit_logger or AuditLogger()

    @property
    def storage(self) -> KeyValueStorageInterface:
        return self._storage

    @property
    def keys(self) -> StorageKeys:
        return self._keys

    # -------------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------------

    def _load_roster(self) -> list[User]:
        raw = self._storage.get_item(self._keys.users)
        if not isinstance(raw, list):
            return []

        users = []
        for item in raw:
            try:
                users.append(User.model_validate(item))
            except pydantic.ValidationError as e:
                logger.warning("unreadable_user_record", error=str(e))
        return users

    @staticmethod
    def _dump_roster(users: list[User]) -> list[dict]:
        return [user.model_dump(mode="json", by_alias=True) for user in users]

    @staticmethod
    def _find(users: list[User], username: str) -> int:
        for position, user in enumerate(users):
            if user.username == username:
                return position
        return -1

    async def _start_session(self, user: User) -> Session:
        session = Session(user=user)
        await write_batch(self._storage, self._audit, "log_in", {
            self._keys.logged_in_user: session.model_dump(mode="json", by_alias=True),
        })
        return session

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def sign_up(self, username: str, password: Optional[str] = None) -> User:
        """
        Register a new user and log them in.

        Raises:
            ValidationError: If the username is empty
            DuplicateUsernameError: If the username is already taken
        """
        try:
            self._validator.require_username(username)
            users = self._load_roster()
            if self._find(users, username) >= 0:
                raise DuplicateUsernameError("Username already exists.")
        except FinanceDashboardError as e:
            await self._audit.log_rejected("sign_up", e, actor=username)
            raise

        user = User(username=username)
        users.append(user)
        session = Session(user=user)
        await write_batch(self._storage, self._audit, "sign_up", {
            self._keys.users: self._dump_roster(users),
            self._keys.logged_in_user: session.model_dump(mode="json", by_alias=True),
        })

        await self._audit.log_user_signed_up(user)
        await self._audit.log_user_logged_in(session)
        return user

    async def log_in(self, username: str, password: Optional[str] = None) -> User:
        """
        Log in an existing user. The password is not checked.

        Raises:
            ValidationError: If the username is empty
            UserNotFoundError: If no user has this username
        """
        try:
            self._validator.require_username(username)
            users = self._load_roster()
            position = self._find(users, username)
            if position < 0:
                raise UserNotFoundError("Invalid username or password.")
        except FinanceDashboardError as e:
            await self._audit.log_rejected("log_in", e, actor=username)
            raise

        user = users[position]
        session = await self._start_session(user)
        await self._audit.log_user_logged_in(session)
        return user

    async def log_out(self) -> None:
        """Clear the session. Safe to call when nobody is logged in."""
        session = self.get_session()
        await write_batch(self._storage, self._audit, "log_out", {}, [self._keys.logged_in_user])
        await self._audit.log_user_logged_out(session.username if session else None)

    def get_session(self) -> Optional[Session]:
        raw = self._storage.get_item(self._keys.logged_in_user)
        if not isinstance(raw, dict):
            return None

        try:
            if "user" in raw:
                return Session.model_validate(raw)
            # Older markers hold the bare user record
            return Session(user=User.model_validate(raw))
        except pydantic.ValidationError as e:
            logger.warning("unreadable_session_marker", error=str(e))
            return None

    def get_current_user(self) -> Optional[User]:
        session = self.get_session()
        return session.user if session else None

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None

    # -------------------------------------------------------------------------
    # Profile changes
    # -------------------------------------------------------------------------

    async def update_username(self, old_username: str, new_username: str) -> User:
        """
        Rename a user and carry everything they own over to the new name.

        The roster entry, the session marker (if it is this user), every
        account owned by `old_username`, the ownership index and the
        per-user settings are all rewritten in a single batch write.

        Raises:
            ValidationError: If the new username is too short or unchanged
            DuplicateUsernameError: If the new username is taken
            UserNotFoundError: If `old_username` is not registered
        """
        try:
            self._validator.validate_new_username(old_username, new_username)
            users = self._load_roster()
            if self._find(users, new_username) >= 0:
                raise DuplicateUsernameError("Username already taken.")
            position = self._find(users, old_username)
            if position < 0:
                raise UserNotFoundError(f"User not found: {old_username}")
        except FinanceDashboardError as e:
            await self._audit.log_rejected("update_username", e, actor=old_username)
            raise

        user = users[position].model_copy(update={"username": new_username})
        users[position] = user
        updates = {self._keys.users: self._dump_roster(users)}
        removals = []

        session = self.get_session()
        if session and session.username == old_username:
            session = session.model_copy(update={"user": user})
            updates[self._keys.logged_in_user] = session.model_dump(mode="json", by_alias=True)

        # Ownership propagation
        collection = AccountCollection.load(self._storage, self._keys)
        index = load_index(self._storage, self._keys, collection)
        migrated = collection.rename_owner(old_username, new_username)
        owned_ids = index.pop(old_username, [])
        if owned_ids:
            index[new_username] = index.get(new_username, []) + owned_ids
        updates[self._keys.bank_accounts] = collection.dump()
        updates[self._keys.account_index] = index

        old_settings_key = self._keys.user_settings(old_username)
        saved_settings = self._storage.get_item(old_settings_key)
        if saved_settings is not None:
            updates[self._keys.user_settings(new_username)] = saved_settings
            removals.append(old_settings_key)

        await write_batch(self._storage, self._audit, "update_username", updates, removals)
        await self._audit.log_username_changed(old_username, user, migrated)
        return user

    async def update_password(self, username: str, new_password: str) -> None:
        """
        Accept a password change. Nothing is persisted.

        Raises:
            ValidationError: If the new password is too short
        """
        try:
            self._validator.validate_new_password(new_password)
        except FinanceDashboardError as e:
            await self._audit.log_rejected("update_password", e, actor=username)
            raise

        await self._audit.log_password_changed(username)

    async def update_user_avatar(self, username: str, avatar_data_url: Optional[str]) -> User:
        """
        Set (or clear, with None) a user's avatar.

        Raises:
            UserNotFoundError: If the user is not registered
        """
        users = self._load_roster()
        position = self._find(users, username)
        if position < 0:
            error = UserNotFoundError(f"User not found: {username}")
            await self._audit.log_rejected("update_user_avatar", error, actor=username)
            raise error

        user = users[position].model_copy(update={"avatar_data_url": avatar_data_url})
        users[position] = user
        updates = {self._keys.users: self._dump_roster(users)}

        session = self.get_session()
        if session and session.username == username:
            session = session.model_copy(update={"user": user})
            updates[self._keys.logged_in_user] = session.model_dump(mode="json", by_alias=True)

        await write_batch(self._storage, self._audit, "update_user_avatar", updates)
        await self._audit.log_avatar_changed(user)
        return user
