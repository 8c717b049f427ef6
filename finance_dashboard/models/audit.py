"""
Audit Models for Finance Dashboard

Every mutation of users, sessions, accounts or settings produces an
audit event. Rejected operations produce a warning event carrying the
reason, so the log shows what was attempted as well as what happened.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    USER_SIGNED_UP = "user_signed_up"
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"

    # Profile
    USERNAME_CHANGED = "username_changed"
    PASSWORD_CHANGED = "password_changed"
    AVATAR_CHANGED = "avatar_changed"

    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_CATEGORIZED = "account_categorized"

    # Settings
    SETTINGS_SAVED = "settings_saved"

    # Failures
    OPERATION_REJECTED = "operation_rejected"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who did it and what entity is this about?
    actor: Optional[str] = Field(
        default=None,
        description="Username that performed the action, if any"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'account', 'settings')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_signed_up("alice", user_id)
        event = AuditEventBuilder.account_deleted("alice", account_id)
    """

    @staticmethod
    def user_signed_up(username: str, user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            actor=username,
            entity_type="user",
            entity_id=user_id,
            description=f"User signed up: {username}",
        )

    @staticmethod
    def user_logged_in(username: str, session_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            actor=username,
            entity_type="session",
            entity_id=session_id,
            description=f"User logged in: {username}",
        )

    @staticmethod
    def user_logged_out(username: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            actor=username,
            entity_type="session",
            description=(
                f"User logged out: {username}" if username
                else "Log out with no active session"
            ),
        )

    @staticmethod
    def username_changed(
        old_username: str,
        new_username: str,
        user_id: str,
        migrated_accounts: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USERNAME_CHANGED,
            actor=new_username,
            entity_type="user",
            entity_id=user_id,
            description=f"Username changed: {old_username} -> {new_username}",
            details={
                "old_username": old_username,
                "new_username": new_username,
                "migrated_accounts": migrated_accounts,
            },
        )

    @staticmethod
    def password_changed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_CHANGED,
            actor=username,
            entity_type="user",
            description=f"Password change accepted for {username} (not persisted)",
        )

    @staticmethod
    def avatar_changed(username: str, user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AVATAR_CHANGED,
            actor=username,
            entity_type="user",
            entity_id=user_id,
            description=f"Avatar updated for {username}",
        )

    @staticmethod
    def account_created(
        username: str,
        account_id: str,
        account_name: str,
        account_type: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            actor=username,
            entity_type="account",
            entity_id=account_id,
            description=f"Account created: {account_name}",
            details={
                "account_name": account_name,
                "account_type": account_type,
            },
        )

    @staticmethod
    def account_updated(
        username: str,
        account_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            actor=username,
            entity_type="account",
            entity_id=account_id,
            description=f"Account updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def account_deleted(username: str, account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            actor=username,
            entity_type="account",
            entity_id=account_id,
            description="Account deleted",
        )

    @staticmethod
    def account_categorized(
        username: str,
        account_id: str,
        category: str,
        confidence: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CATEGORIZED,
            actor=username,
            entity_type="account",
            entity_id=account_id,
            description=f"Account categorized as {category} ({confidence:.0%})",
            details={
                "category": category,
                "confidence": confidence,
            },
        )

    @staticmethod
    def settings_saved(username: str, settings: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            actor=username,
            entity_type="settings",
            entity_id=username,
            description=f"Settings saved for {username}",
            details=settings,
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error: Exception,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            description=f"Operation rejected: {operation}",
            error_code=type(error).__name__,
            error_message=str(error),
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            is_user_action=False,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            actor=actor,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            is_user_action=False,
        )
