"""
Tests for account categorization.

The Gemini model is replaced by a fake exposing generate_content_async,
so no network calls are made.
"""

from types import SimpleNamespace

import pytest

from finance_dashboard.config import GeminiSettings
from finance_dashboard.models.account import CategorizationRequest, CategorizationResult
from finance_dashboard.models.audit import AuditEventType
from finance_dashboard.orchestrator import CategorizationFlow
from finance_dashboard.errors import NotFoundError
from finance_dashboard.services.categorization import (
    AccountCategorizerInterface,
    CategorizationError,
    GeminiAccountCategorizer,
    build_prompt,
    parse_reply,
)


class FakeModel:
    """Replays canned replies; an Exception instance is raised instead."""

    def __init__(self, *replies):
        self._replies = list(replies)
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


class FakeCategorizer(AccountCategorizerInterface):
    def __init__(self, result=None, error=None):
        self._result = result
        self._error = error
        self.requests = []

    async def categorize(self, request):
        self.requests.append(request)
        if self._error:
            raise self._error
        return self._result


def gemini_settings(**overrides):
    fields = {"api_key": None, "max_attempts": 1}
    fields.update(overrides)
    return GeminiSettings(**fields)


class TestParseReply:
    def test_plain_json(self):
        result = parse_reply('{"category": "Savings", "confidence": 0.8}')
        assert result == CategorizationResult(category="Savings", confidence=0.8)

    def test_json_wrapped_in_prose(self):
        result = parse_reply('Sure!\n```json\n{"category": "Loan", "confidence": 0.6}\n```')
        assert result.category == "Loan"

    def test_known_category_normalized(self):
        assert parse_reply('{"category": "credit card", "confidence": 0.5}').category == "Credit Card"

    def test_unknown_category_kept(self):
        assert parse_reply('{"category": "Crypto Wallet", "confidence": 0.5}').category == "Crypto Wallet"

    def test_confidence_clamped(self):
        assert parse_reply('{"category": "Other", "confidence": 1.7}').confidence == 1.0
        assert parse_reply('{"category": "Other", "confidence": -3}').confidence == 0.0

    @pytest.mark.parametrize("text", [
        "no json here",
        '{"category": "Savings", "confidence": 0.5',
        '{"confidence": 0.5}',
        '{"category": "Savings", "confidence": "high"}',
        '{"category": "Savings"}',
    ])
    def test_unusable_replies(self, text):
        with pytest.raises(CategorizationError):
            parse_reply(text)


class TestGeminiAccountCategorizer:
    def test_prompt_contains_account_details(self):
        prompt = build_prompt(CategorizationRequest(
            account_name="Holiday fund",
            account_description="Money for trips",
        ))
        assert "Account Name: Holiday fund" in prompt
        assert "Account Description: Money for trips" in prompt
        assert '"Mortgage"' in prompt

    def test_categorize(self, run):
        model = FakeModel('{"category": "savings", "confidence": 0.9}')
        categorizer = GeminiAccountCategorizer(gemini_settings(), model=model)

        result = run(categorizer.categorize(CategorizationRequest(account_name="Holiday fund")))

        assert result == CategorizationResult(category="Savings", confidence=0.9)
        assert len(model.prompts) == 1

    def test_transport_failure_raises(self, run):
        model = FakeModel(RuntimeError("connection reset"))
        categorizer = GeminiAccountCategorizer(gemini_settings(), model=model)
        with pytest.raises(CategorizationError, match="connection reset"):
            run(categorizer.categorize(CategorizationRequest(account_name="X")))

    def test_transport_failure_retried(self, run):
        model = FakeModel(RuntimeError("busy"), '{"category": "Loan", "confidence": 0.7}')
        categorizer = GeminiAccountCategorizer(gemini_settings(max_attempts=2), model=model)

        result = run(categorizer.categorize(CategorizationRequest(account_name="Car loan")))

        assert result.category == "Loan"
        assert len(model.prompts) == 2

    def test_bad_reply_not_retried(self, run):
        model = FakeModel("I cannot help with that", '{"category": "Loan", "confidence": 0.7}')
        categorizer = GeminiAccountCategorizer(gemini_settings(max_attempts=3), model=model)
        with pytest.raises(CategorizationError):
            run(categorizer.categorize(CategorizationRequest(account_name="X")))
        assert len(model.prompts) == 1

    def test_requires_api_key_without_model(self):
        with pytest.raises(CategorizationError):
            GeminiAccountCategorizer(gemini_settings())


class TestCategorizationFlow:
    @pytest.fixture
    def account(self, run, sessions, accounts, account_data):
        run(sessions.sign_up("alice"))
        return run(accounts.add_account(account_data))

    def test_suggest_does_not_write(self, run, accounts, account):
        categorizer = FakeCategorizer(CategorizationResult(category="Checking", confidence=0.95))
        flow = CategorizationFlow(accounts, categorizer)

        result = run(flow.suggest(account.id))

        assert result.category == "Checking"
        assert categorizer.requests == [CategorizationRequest(
            account_name="Everyday Checking",
            account_description="Salary account",
        )]
        assert run(accounts.get_account(account.id)).category is None

    def test_categorize_stores_result(self, run, accounts, account, audit_logger):
        flow = CategorizationFlow(
            accounts,
            FakeCategorizer(CategorizationResult(category="Checking", confidence=0.95)),
        )

        updated = run(flow.categorize(account.id))

        assert updated.category == "Checking"
        assert updated.category_confidence == 0.95
        assert updated.balance == account.balance
        assert run(accounts.get_account(account.id)) == updated
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.ACCOUNT_CATEGORIZED

    def test_accept_stores_given_result(self, run, accounts, account):
        flow = CategorizationFlow(accounts)
        updated = run(flow.accept(account.id, CategorizationResult(category="Other", confidence=0.2)))
        assert updated.category == "Other"

    def test_failure_leaves_account_untouched(self, run, accounts, account, audit_logger):
        flow = CategorizationFlow(
            accounts,
            FakeCategorizer(error=CategorizationError("model unavailable")),
            audit_logger,
        )

        with pytest.raises(CategorizationError):
            run(flow.categorize(account.id))

        assert run(accounts.get_account(account.id)) == account
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.EXTERNAL_SERVICE_ERROR

    def test_not_configured(self, run, accounts, account):
        flow = CategorizationFlow(accounts)
        assert flow.enabled is False
        with pytest.raises(CategorizationError):
            run(flow.suggest(account.id))

    def test_unknown_account(self, run, accounts, account):
        flow = CategorizationFlow(accounts, FakeCategorizer())
        with pytest.raises(NotFoundError):
            run(flow.categorize("missing"))
