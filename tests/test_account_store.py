"""Tests for the account store: scoping, CRUD and locale policy."""

from decimal import Decimal

import pytest

from finance_dashboard.errors import (
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)
from finance_dashboard.models.account import AccountType, CategorizationResult
from finance_dashboard.models.audit import AuditEventType
from finance_dashboard.services.storage import InMemoryStorage, StorageError
from finance_dashboard.stores import AccountStore, SessionStore


@pytest.fixture
def alice(run, sessions):
    return run(sessions.sign_up("alice"))


def stored_accounts(storage, keys):
    return storage.get_item(keys.bank_accounts)


class TestScoping:
    """Every read is limited to the session user."""

    def test_logged_out_sees_nothing(self, run, accounts):
        assert run(accounts.get_accounts()) == []

    def test_users_never_see_each_others_accounts(self, run, sessions, accounts, account_data):
        run(sessions.sign_up("alice"))
        run(accounts.add_account({**account_data, "account_name": "Alice's"}))
        run(sessions.sign_up("bob"))
        run(accounts.add_account({**account_data, "account_name": "Bob's"}))

        assert [a.account_name for a in run(accounts.get_accounts())] == ["Bob's"]
        run(sessions.log_in("alice"))
        assert [a.account_name for a in run(accounts.get_accounts())] == ["Alice's"]
        assert all(a.user_id == "alice" for a in run(accounts.get_accounts()))

    def test_get_account_of_other_user(self, run, sessions, accounts, account_data):
        run(sessions.sign_up("alice"))
        created = run(accounts.add_account(account_data))
        run(sessions.sign_up("bob"))
        with pytest.raises(NotFoundError):
            run(accounts.get_account(created.id))

    def test_get_account_logged_out(self, run, accounts):
        with pytest.raises(NotAuthenticatedError):
            run(accounts.get_account("1"))


class TestAddAccount:
    def test_requires_session(self, run, accounts, account_data, storage):
        with pytest.raises(NotAuthenticatedError):
            run(accounts.add_account(account_data))
        assert storage.keys() == []

    def test_round_trip_with_forced_locale(self, run, alice, accounts, account_data):
        created = run(accounts.add_account({
            **account_data,
            "currency_code": "USD",
            "country": "US",
        }))

        assert created.user_id == "alice"
        assert created.currency_code == "GHS"
        assert created.country == "GH"
        assert created.account_name == account_data["account_name"]
        assert created.balance == Decimal("1500.50")
        assert created.account_type == AccountType.CHECKING
        assert created.description == "Salary account"
        assert run(accounts.get_accounts()) == [created]

    def test_generated_ids_are_unique(self, run, alice, sessions, ghana, account_data):
        store = AccountStore(sessions, default_country=ghana)
        first = run(store.add_account(account_data))
        second = run(store.add_account(account_data))
        assert first.id != second.id

    def test_malformed_payload_writes_nothing(self, run, alice, accounts, account_data, storage, keys):
        with pytest.raises(ValidationError):
            run(accounts.add_account({**account_data, "balance": "-10"}))
        with pytest.raises(ValidationError):
            run(accounts.add_account({**account_data, "account_type": "Piggy Bank"}))
        assert stored_accounts(storage, keys) is None

    def test_appends_to_full_collection(self, run, sessions, accounts, account_data, storage, keys):
        run(sessions.sign_up("alice"))
        run(accounts.add_account(account_data))
        run(sessions.sign_up("bob"))
        run(accounts.add_account(account_data))
        assert [a["userId"] for a in stored_accounts(storage, keys)] == ["alice", "bob"]

    def test_audited(self, run, alice, accounts, account_data, audit_logger):
        created = run(accounts.add_account(account_data))
        event = audit_logger.recent_events(1)[0]
        assert event.event_type == AuditEventType.ACCOUNT_CREATED
        assert event.entity_id == created.id


class TestUpdateAccount:
    def test_only_balance_changes(self, run, alice, accounts, account_data):
        created = run(accounts.add_account(account_data))
        before = run(accounts.set_category(
            created.id, CategorizationResult(category="Checking", confidence=0.92)
        ))

        after = run(accounts.update_account(created.id, {"balance": 500}))

        assert after.balance == Decimal("500")
        assert after.model_dump(exclude={"balance"}) == before.model_dump(exclude={"balance"})
        assert after.category == "Checking"
        assert after.category_confidence == 0.92

    def test_currency_and_country_cannot_be_changed(self, run, alice, accounts, account_data):
        created = run(accounts.add_account(account_data))
        updated = run(accounts.update_account(created.id, {
            "currency_code": "EUR",
            "country": "FR",
            "bank_name": "Ecobank",
        }))
        assert updated.currency_code == "GHS"
        assert updated.country == "GH"
        assert updated.bank_name == "Ecobank"

    def test_identity_cannot_be_changed(self, run, alice, accounts, account_data):
        created = run(accounts.add_account(account_data))
        updated = run(accounts.update_account(created.id, {"id": "999", "user_id": "bob"}))
        assert updated.id == created.id
        assert updated.user_id == "alice"

    def test_keeps_existing_foreign_country(self, run, alice, accounts, storage, keys):
        storage.set_item(keys.bank_accounts, [{
            "id": "usd",
            "user_id": "alice",
            "account_name": "Dollar account",
            "bank_name": "Chase",
            "balance": "20",
            "account_type": "Savings",
            "currency_code": "USD",
            "country": "US",
        }])
        updated = run(accounts.update_account("usd", {"balance": 25}))
        assert updated.currency_code == "GHS"
        assert updated.country == "US"

    def test_unknown_account(self, run, alice, accounts):
        with pytest.raises(NotFoundError):
            run(accounts.update_account("missing", {"balance": 1}))

    def test_other_users_account(self, run, sessions, accounts, account_data, storage, keys):
        run(sessions.sign_up("alice"))
        created = run(accounts.add_account(account_data))
        run(sessions.sign_up("bob"))
        before = stored_accounts(storage, keys)

        with pytest.raises(NotFoundError):
            run(accounts.update_account(created.id, {"balance": 0}))
        assert stored_accounts(storage, keys) == before

    def test_invalid_update_writes_nothing(self, run, alice, accounts, account_data, storage, keys):
        created = run(accounts.add_account(account_data))
        before = stored_accounts(storage, keys)
        with pytest.raises(ValidationError):
            run(accounts.update_account(created.id, {"balance": -1}))
        with pytest.raises(ValidationError):
            run(accounts.update_account(created.id, {"account_name": ""}))
        assert stored_accounts(storage, keys) == before

    def test_requires_session(self, run, accounts):
        with pytest.raises(NotAuthenticatedError):
            run(accounts.update_account("1", {"balance": 1}))


class TestDeleteAccount:
    def test_delete(self, run, alice, accounts, account_data, storage, keys):
        first = run(accounts.add_account(account_data))
        second = run(accounts.add_account(account_data))

        run(accounts.delete_account(first.id))

        assert [a.id for a in run(accounts.get_accounts())] == [second.id]
        assert storage.get_item(keys.account_index) == {"alice": [second.id]}

    def test_delete_last_account_clears_index_entry(self, run, alice, accounts, account_data, storage, keys):
        created = run(accounts.add_account(account_data))
        run(accounts.delete_account(created.id))
        assert storage.get_item(keys.account_index) == {}

    def test_unknown_id_leaves_collection_unchanged(self, run, alice, accounts, account_data, storage, keys):
        run(accounts.add_account(account_data))
        before = stored_accounts(storage, keys)
        with pytest.raises(NotFoundError):
            run(accounts.delete_account("missing"))
        assert stored_accounts(storage, keys) == before

    def test_other_users_account_leaves_collection_unchanged(
        self, run, sessions, accounts, account_data, storage, keys
    ):
        run(sessions.sign_up("alice"))
        created = run(accounts.add_account(account_data))
        run(sessions.sign_up("bob"))
        before = stored_accounts(storage, keys)

        with pytest.raises(NotFoundError):
            run(accounts.delete_account(created.id))
        assert stored_accounts(storage, keys) == before

    def test_requires_session(self, run, accounts):
        with pytest.raises(NotAuthenticatedError):
            run(accounts.delete_account("1"))


class TestStoredData:
    """Older and damaged data already in storage."""

    def test_missing_locale_fields_backfilled_on_read(self, run, alice, accounts, storage, keys):
        legacy = {
            "id": "legacy",
            "user_id": "alice",
            "account_name": "Old savings",
            "bank_name": "Bank",
            "balance": "10",
            "account_type": "Savings",
        }
        storage.set_item(keys.bank_accounts, [legacy])

        (account,) = run(accounts.get_accounts())

        assert account.currency_code == "GHS"
        assert account.country == "GH"
        # Reads never write
        assert stored_accounts(storage, keys) == [legacy]

    def test_foreign_locale_records_returned_as_stored(self, run, alice, accounts, storage, keys, ghana):
        storage.set_item(keys.bank_accounts, [{
            "id": "usd",
            "user_id": "alice",
            "account_name": "Dollar account",
            "bank_name": "Chase",
            "balance": "20",
            "account_type": "Savings",
            "currency_code": "USD",
            "country": "US",
        }])
        (account,) = run(accounts.get_accounts())
        assert account.currency_code == "USD"
        assert account.uses_locale(ghana) is False

    def test_unreadable_records_survive_writes(self, run, alice, accounts, account_data, storage, keys):
        damaged = {"id": "bad", "user_id": "alice", "balance": -5}
        storage.set_item(keys.bank_accounts, [damaged])

        run(accounts.add_account(account_data))

        assert stored_accounts(storage, keys)[0] == damaged
        assert [a.id for a in run(accounts.get_accounts())] == ["1"]

    def test_camel_case_records_load(self, run, alice, accounts, storage, keys):
        storage.set_item(keys.bank_accounts, [{
            "id": "1718000000000",
            "userId": "alice",
            "accountName": "Main",
            "bankName": "Ecobank",
            "balance": 250.75,
            "accountType": "Checking",
            "currencyCode": "GHS",
            "country": "GH",
            "categoryConfidence": 0.9,
            "category": "Checking",
        }])

        (account,) = run(accounts.get_accounts())

        assert account.account_name == "Main"
        assert account.balance == Decimal("250.75")
        assert account.category_confidence == 0.9

    def test_records_written_with_camel_case_keys(self, run, alice, accounts, account_data, storage, keys):
        run(accounts.add_account(account_data))
        (record,) = stored_accounts(storage, keys)
        assert record["userId"] == "alice"
        assert record["accountName"] == "Everyday Checking"
        assert record["balance"] == 1500.5
        assert "user_id" not in record


class TestOwnershipIndex:
    """The stored collection decides ownership; the index follows it."""

    def test_record_missing_from_index_is_listed(self, run, alice, accounts, account_data, storage, keys):
        run(accounts.add_account(account_data))
        external = {**stored_accounts(storage, keys)[0], "id": "external"}
        storage.set_item(keys.bank_accounts, stored_accounts(storage, keys) + [external])

        assert [a.id for a in run(accounts.get_accounts())] == ["1", "external"]
        assert run(accounts.get_account("external")).id == "external"

    def test_stale_index_repaired_on_next_write(self, run, alice, accounts, account_data, storage, keys):
        run(accounts.add_account(account_data))
        external = {**stored_accounts(storage, keys)[0], "id": "external"}
        storage.set_item(keys.bank_accounts, stored_accounts(storage, keys) + [external])

        run(accounts.add_account(account_data))

        assert storage.get_item(keys.account_index) == {"alice": ["1", "external", "2"]}

    def test_missing_index_rebuilt(self, run, alice, accounts, account_data, storage, keys):
        run(accounts.add_account(account_data))
        storage.remove_item(keys.account_index)

        run(accounts.delete_account("1"))

        assert storage.get_item(keys.account_index) == {}


class FailingStorage(InMemoryStorage):
    """Writes fail once `failing` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def write_batch(self, updates, removals=()):
        if self.failing:
            raise StorageError("disk full")
        super().write_batch(updates, removals)


class TestStorageFailures:
    def test_failed_write_is_audited_and_raised(self, run, keys, ghana, validator, audit_logger, account_data):
        storage = FailingStorage()
        sessions = SessionStore(storage, keys=keys, validator=validator, audit_logger=audit_logger)
        accounts = AccountStore(
            sessions,
            default_country=ghana,
            validator=validator,
            audit_logger=audit_logger,
        )
        run(sessions.sign_up("alice"))
        storage.failing = True

        with pytest.raises(StorageError):
            run(accounts.add_account(account_data))

        event = audit_logger.recent_events(1)[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details["operation"] == "add_account"
        assert event.error_message == "disk full"
        assert run(accounts.get_accounts()) == []
