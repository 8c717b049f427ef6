"""
Audit Logger

DESIGN DECISION: Every mutation in the system is logged.
The audit logger:
- Is async so it fits the async store operations
- Never raises into the caller (a failed log must not fail a mutation)
- Keeps a bounded in-memory history of recent events
"""

from collections import deque
from typing import Optional

import structlog

from finance_dashboard.models.account import Account
from finance_dashboard.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_dashboard.models.user import Session, User


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most
    recent ones in memory.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("finance_dashboard.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written to the local log.
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never break the operation being audited
            return False
        return True

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    async def log_user_signed_up(self, user: User) -> None:
        await self.log(AuditEventBuilder.user_signed_up(user.username, user.id))

    async def log_user_logged_in(self, session: Session) -> None:
        await self.log(
            AuditEventBuilder.user_logged_in(session.username, session.session_id)
        )

    async def log_user_logged_out(self, username: Optional[str]) -> None:
        await self.log(AuditEventBuilder.user_logged_out(username))

    async def log_username_changed(
        self,
        old_username: str,
        user: User,
        migrated_accounts: int,
    ) -> None:
        await self.log(
            AuditEventBuilder.username_changed(
                old_username=old_username,
                new_username=user.username,
                user_id=user.id,
                migrated_accounts=migrated_accounts,
            )
        )

    async def log_password_changed(self, username: str) -> None:
        await self.log(AuditEventBuilder.password_changed(username))

    async def log_avatar_changed(self, user: User) -> None:
        await self.log(AuditEventBuilder.avatar_changed(user.username, user.id))

    async def log_account_created(self, account: Account) -> None:
        await self.log(
            AuditEventBuilder.account_created(
                username=account.user_id,
                account_id=account.id,
                account_name=account.account_name,
                account_type=account.account_type.value,
            )
        )

    async def log_account_updated(self, account: Account, fields: list[str]) -> None:
        await self.log(
            AuditEventBuilder.account_updated(account.user_id, account.id, fields)
        )

    async def log_account_deleted(self, username: str, account_id: str) -> None:
        await self.log(AuditEventBuilder.account_deleted(username, account_id))

    async def log_account_categorized(self, account: Account) -> None:
        await self.log(
            AuditEventBuilder.account_categorized(
                username=account.user_id,
                account_id=account.id,
                category=account.category or "",
                confidence=account.category_confidence or 0.0,
            )
        )

    async def log_settings_saved(self, username: str, settings: dict) -> None:
        await self.log(AuditEventBuilder.settings_saved(username, settings))

    async def log_rejected(
        self,
        operation: str,
        error: Exception,
        actor: Optional[str] = None,
    ) -> None:
        """Log an operation that was refused before any write."""
        await self.log(AuditEventBuilder.operation_rejected(operation, error, actor))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.system_error(error_type, error_message, details)
        )

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        actor: Optional[str] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.external_service_error(service, error_message, actor)
        )
