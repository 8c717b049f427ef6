"""Input validation package."""

from finance_dashboard.validation.validator import InputValidator, describe_pydantic_error

__all__ = ["InputValidator", "describe_pydantic_error"]
