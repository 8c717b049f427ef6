"""Account categorization services."""

from finance_dashboard.services.categorization.interface import (
    SUGGESTED_CATEGORIES,
    AccountCategorizerInterface,
    CategorizationError,
)
from finance_dashboard.services.categorization.gemini_service import (
    GeminiAccountCategorizer,
    build_prompt,
    parse_reply,
)

__all__ = [
    "SUGGESTED_CATEGORIES",
    "AccountCategorizerInterface",
    "CategorizationError",
    "GeminiAccountCategorizer",
    "build_prompt",
    "parse_reply",
]
