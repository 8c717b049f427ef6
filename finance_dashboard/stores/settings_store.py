"""Per-user settings (theme, notifications, data sharing)."""

from typing import Any, Mapping, Optional, Union

import structlog

from finance_dashboard.audit import AuditLogger
from finance_dashboard.errors import (
    FinanceDashboardError,
    NotAuthenticatedError,
    ValidationError,
)
from finance_dashboard.models.user import UserSettings
from finance_dashboard.stores.persistence import write_batch
from finance_dashboard.stores.session_store import SessionStore
from finance_dashboard.validation import InputValidator


logger = structlog.get_logger(__name__)


class SettingsStore:
    """Settings blob for the session user, stored under a per-user key."""

    def __init__(
        self,
        sessions: SessionStore,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._sessions = sessions
        self._storage = sessions.storage
        self._keys = sessions.keys
        self._validator = validator or InputValidator()
        self._audit = audit_logger or AuditLogger()

    async def get_settings(self) -> UserSettings:
        """
        Defaults overlaid with whatever the session user saved.

        Logged-out callers get the defaults.
        """
        user = self._sessions.get_current_user()
        if user is None:
            return UserSettings()

        saved = self._storage.get_item(self._keys.user_settings(user.username))
        if not isinstance(saved, dict):
            return UserSettings()
        # Fields missing from the saved blob take their defaults
        try:
            return self._validator.parse(UserSettings, saved)
        except ValidationError as e:
            logger.warning("unreadable_user_settings", username=user.username, error=str(e))
            return UserSettings()

    async def save_settings(
        self,
        settings: Union[UserSettings, Mapping[str, Any]],
    ) -> UserSettings:
        """
        Raises:
            NotAuthenticatedError: If nobody is logged in
            ValidationError: If the settings are malformed
        """
        try:
            user = self._sessions.get_current_user()
            if user is None:
                raise NotAuthenticatedError("Cannot save settings: no user logged in.")
            parsed = self._validator.parse(UserSettings, settings)
        except FinanceDashboardError as e:
            await self._audit.log_rejected("save_settings", e)
            raise

        payload = parsed.model_dump(mode="json", by_alias=True)
        await write_batch(self._storage, self._audit, "save_settings", {
            self._keys.user_settings(user.username): payload,
        })
        await self._audit.log_settings_saved(user.username, payload)
        return parsed
