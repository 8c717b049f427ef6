"""
Stores Package

Session, account and settings stores built on the key-value storage.
"""

from finance_dashboard.stores.session_store import SessionStore
from finance_dashboard.stores.account_store import AccountStore
from finance_dashboard.stores.settings_store import SettingsStore

__all__ = [
    "AccountStore",
    "SessionStore",
    "SettingsStore",
]
