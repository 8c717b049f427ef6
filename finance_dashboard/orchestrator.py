"""
Main Orchestrator for Finance Dashboard

Ties the components together and defines the flows that span more
than one of them:
1. Categorize (account -> remote categorizer -> user keeps result)
2. Dashboard summary (session user's accounts -> totals)

DESIGN DECISION: A categorization result is only stored when the
caller asks for it. `suggest` never writes; `categorize` and `accept`
do, and both are meant to be triggered by an explicit user action.
"""

from typing import Any, NamedTuple, Optional

import structlog

from finance_dashboard.audit import AuditLogger
from finance_dashboard.config import Settings, get_settings, validate_all_settings
from finance_dashboard.models.account import (
    Account,
    CategorizationRequest,
    CategorizationResult,
    CountryInfo,
)
from finance_dashboard.queries import AccountSummary, summarize_accounts
from finance_dashboard.services.categorization import (
    AccountCategorizerInterface,
    CategorizationError,
    GeminiAccountCategorizer,
)
from finance_dashboard.services.storage import (
    InMemoryStorage,
    JSONFileStorage,
    KeyValueStorageInterface,
    StorageKeys,
)
from finance_dashboard.stores import AccountStore, SessionStore, SettingsStore
from finance_dashboard.validation import InputValidator


logger = structlog.get_logger(__name__)


class CategorizationFlow:
    """
    Orchestrates AI categorization of an account.

    Flow:
    1. Load the owned account (NotFoundError if it isn't theirs)
    2. Ask the categorizer for a label and confidence
    3. Store the result (categorize/accept only)
    """

    def __init__(
        self,
        accounts: AccountStore,
        categorizer: Optional[AccountCategorizerInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._accounts = accounts
        self._categorizer = categorizer
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def enabled(self) -> bool:
        return self._categorizer is not None

    async def suggest(self, account_id: str) -> CategorizationResult:
        """
        Ask for a category without storing it.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            NotFoundError: If the account is not the session user's
            CategorizationError: If categorization is unavailable or fails
        """
        account = await self._accounts.get_account(account_id)

        if self._categorizer is None:
            raise CategorizationError("Account categorization is not configured.")

        request = CategorizationRequest(
            account_name=account.account_name,
            account_description=account.description or "",
        )
        try:
            return await self._categorizer.categorize(request)
        except CategorizationError as e:
            await self._audit_logger.log_external_service_error(
                service="categorizer",
                error_message=str(e),
                actor=account.user_id,
            )
            raise

    async def accept(
        self,
        account_id: str,
        result: CategorizationResult,
    ) -> Account:
        """Store a suggestion the user accepted."""
        return await self._accounts.set_category(account_id, result)

    async def categorize(self, account_id: str) -> Account:
        """Suggest and immediately store the result."""
        result = await self.suggest(account_id)
        return await self.accept(account_id, result)


class DashboardFlow:
    """Read-side view of the session user's dashboard."""

    def __init__(self, accounts: AccountStore):
        self._accounts = accounts

    async def summary(self) -> AccountSummary:
        accounts = await self._accounts.get_accounts()
        return summarize_accounts(accounts, self._accounts.default_country)


class AppComponents(NamedTuple):
    storage: KeyValueStorageInterface
    sessions: SessionStore
    accounts: AccountStore
    settings: SettingsStore
    categorization: CategorizationFlow
    dashboard: DashboardFlow
    audit_logger: AuditLogger
    settings_status: dict[str, Any]


def create_storage(settings: Optional[Settings] = None) -> KeyValueStorageInterface:
    """Build the configured key-value backend."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryStorage()
    return JSONFileStorage(storage_settings.path)


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorageInterface] = None,
    categorizer: Optional[AccountCategorizerInterface] = None,
    use_categorizer: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from (loaded from the environment if None)
        storage: Storage backend override; built from settings if None
        categorizer: Categorizer override; a Gemini categorizer is built
                     when None and an API key is configured
        use_categorizer: Set to False to run without categorization
    """
    settings = settings or get_settings()
    settings_status = validate_all_settings(settings)
    sections = ("storage", "locale", "gemini", "app")
    if all(settings_status.get(name, False) for name in sections):
        logger.info("settings_checked", **settings_status)
    else:
        logger.warning("settings_invalid", **settings_status)
    storage = storage or create_storage(settings)
    keys = StorageKeys(settings.storage.key_prefix)
    audit_logger = AuditLogger()
    validator = InputValidator(settings.app)

    sessions = SessionStore(
        storage,
        keys=keys,
        validator=validator,
        audit_logger=audit_logger,
    )
    accounts = AccountStore(
        sessions,
        default_country=CountryInfo.from_settings(settings.locale),
        validator=validator,
        audit_logger=audit_logger,
    )
    user_settings = SettingsStore(
        sessions,
        validator=validator,
        audit_logger=audit_logger,
    )

    if use_categorizer and categorizer is None and settings.gemini.api_key:
        try:
            categorizer = GeminiAccountCategorizer(settings.gemini)
        except Exception as e:
            # Categorization not available - continue without it
            logger.warning("categorizer_unavailable", error=str(e))
            categorizer = None
    if not use_categorizer:
        categorizer = None

    return AppComponents(
        storage=storage,
        sessions=sessions,
        accounts=accounts,
        settings=user_settings,
        categorization=CategorizationFlow(accounts, categorizer, audit_logger),
        dashboard=DashboardFlow(accounts),
        audit_logger=audit_logger,
        settings_status=settings_status,
    )
