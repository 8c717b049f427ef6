"""Audit logging package."""

from finance_dashboard.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
