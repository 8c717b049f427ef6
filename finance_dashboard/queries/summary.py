"""
Dashboard Summary

Aggregates over the session user's accounts for the dashboard header:
total balance, count, and per-type totals.

Only accounts held in the default currency are summed. Balances in any
other currency are counted separately and never converted.
"""

from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from finance_dashboard.models.account import Account, CountryInfo


class AccountSummary(BaseModel):
    """Totals for one user's accounts."""

    currency_code: str
    total_balance: Decimal = Decimal("0")
    account_count: int = 0
    balance_by_type: dict[str, Decimal] = Field(default_factory=dict)
    uncategorized_count: int = 0
    foreign_currency_count: int = Field(
        default=0,
        description="Accounts held in another currency (excluded from totals)"
    )


def summarize_accounts(
    accounts: Iterable[Account],
    country: CountryInfo,
) -> AccountSummary:
    summary = AccountSummary(currency_code=country.currency_code)

    for account in accounts:
        summary.account_count += 1
        if not account.is_categorized:
            summary.uncategorized_count += 1

        if account.currency_code != country.currency_code:
            summary.foreign_currency_count += 1
            continue

        summary.total_balance += account.balance
        type_label = account.account_type.value
        summary.balance_by_type[type_label] = (
            summary.balance_by_type.get(type_label, Decimal("0")) + account.balance
        )

    return summary
