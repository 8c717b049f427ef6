"""Read-side aggregations over account data."""

from finance_dashboard.queries.summary import AccountSummary, summarize_accounts

__all__ = ["AccountSummary", "summarize_accounts"]
