"""
Data Models Package

This package contains all Pydantic models used in the Finance Dashboard.
Everything persisted to the key-value store must conform to these schemas.
"""

from finance_dashboard.models.account import (
    Account,
    AccountCreate,
    AccountType,
    AccountUpdate,
    CategorizationRequest,
    CategorizationResult,
    CountryInfo,
)
from finance_dashboard.models.user import (
    Session,
    Theme,
    User,
    UserSettings,
)
from finance_dashboard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "Account",
    "AccountCreate",
    "AccountType",
    "AccountUpdate",
    "CategorizationRequest",
    "CategorizationResult",
    "CountryInfo",
    # User models
    "Session",
    "Theme",
    "User",
    "UserSettings",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
