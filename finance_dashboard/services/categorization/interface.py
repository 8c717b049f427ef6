"""
Account Categorization Contract

The categorizer is a remote collaborator: it takes an account name and
description and returns a category label with a confidence score in
[0, 1]. How it arrives at the label is its own business.
"""

from abc import ABC, abstractmethod

from finance_dashboard.models.account import (
    AccountType,
    CategorizationRequest,
    CategorizationResult,
)


# Labels offered to the model. Free-form labels are still accepted back.
SUGGESTED_CATEGORIES = [account_type.value for account_type in AccountType]


class AccountCategorizerInterface(ABC):
    """Anything that can label an account."""

    @abstractmethod
    async def categorize(
        self,
        request: CategorizationRequest,
    ) -> CategorizationResult:
        """
        Categorize one account.

        Raises:
            CategorizationError: If no usable answer could be obtained
        """
        pass


class CategorizationError(Exception):
    """The remote categorization call failed or returned garbage."""
    pass
