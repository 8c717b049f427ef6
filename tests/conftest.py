"""
Shared fixtures.

Every test gets its own in-memory storage, so nothing touches disk
unless a test asks for tmp_path.
"""

import asyncio
from decimal import Decimal
from itertools import count

import pytest

from finance_dashboard.audit import AuditLogger
from finance_dashboard.config import AppSettings
from finance_dashboard.models.account import CountryInfo
from finance_dashboard.services.storage import InMemoryStorage, StorageKeys
from finance_dashboard.stores import AccountStore, SessionStore, SettingsStore
from finance_dashboard.validation import InputValidator


def run_async(coro):
    """Run a coroutine to completion."""
    return asyncio.run(coro)


@pytest.fixture
def run():
    return run_async


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def keys():
    return StorageKeys("test")


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def validator():
    return InputValidator(AppSettings(min_username_length=3, min_password_length=6))


@pytest.fixture
def ghana():
    return CountryInfo(name="Ghana", code="GH", currency_code="GHS", currency_symbol="GH₵")


@pytest.fixture
def sessions(storage, keys, validator, audit_logger):
    return SessionStore(storage, keys=keys, validator=validator, audit_logger=audit_logger)


@pytest.fixture
def accounts(sessions, ghana, validator, audit_logger):
    ids = count(1)
    return AccountStore(
        sessions,
        default_country=ghana,
        validator=validator,
        audit_logger=audit_logger,
        id_factory=lambda: str(next(ids)),
    )


@pytest.fixture
def settings_store(sessions, validator, audit_logger):
    return SettingsStore(sessions, validator=validator, audit_logger=audit_logger)


@pytest.fixture
def account_data():
    return {
        "account_name": "Everyday Checking",
        "bank_name": "GCB Bank",
        "balance": Decimal("1500.50"),
        "account_type": "Checking",
        "description": "Salary account",
    }
