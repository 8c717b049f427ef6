"""
Account Models for Finance Dashboard

These models define the schema of a bank account record as stored in
the flat account collection, plus the payloads used to create and
update one.

DESIGN DECISION: Currency and country are not user-selectable.
They are forced to the configured default locale by the account store.
The models still carry them so records created under other locales
are kept as stored and can be flagged.

Stored records use camelCase keys (`userId`, `accountName`, ...) and a
numeric balance. Payloads are accepted with either camelCase or
snake_case keys.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from finance_dashboard.config import LocaleSettings, get_settings


# =============================================================================
# ENUMS
# =============================================================================

class AccountType(str, Enum):
    """Supported account types."""
    CHECKING = "Checking"
    SAVINGS = "Savings"
    CREDIT_CARD = "Credit Card"
    INVESTMENT = "Investment"
    LOAN = "Loan"
    MORTGAGE = "Mortgage"
    OTHER = "Other"


# =============================================================================
# LOCALE
# =============================================================================

class CountryInfo(BaseModel):
    """A country and the currency accounts in it are held in."""
    model_config = ConfigDict(frozen=True)

    name: str
    code: str = Field(..., min_length=2, max_length=2)
    currency_code: str = Field(..., min_length=3, max_length=3)
    currency_symbol: str

    @classmethod
    def from_settings(cls, locale: Optional[LocaleSettings] = None) -> "CountryInfo":
        """Build the default locale from configuration."""
        locale = locale or get_settings().locale
        return cls(
            name=locale.country_name,
            code=locale.country_code,
            currency_code=locale.currency_code,
            currency_symbol=locale.currency_symbol,
        )


# =============================================================================
# ACCOUNT
# =============================================================================

class AccountCreate(BaseModel):
    """
    Payload for creating an account.

    `currency_code` and `country` are accepted for compatibility with
    older clients but are always overridden by the default locale.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    account_name: str = Field(..., min_length=1, max_length=200)
    bank_name: str = Field(..., min_length=1, max_length=200)
    balance: Decimal = Field(..., ge=0, description="Current balance")
    account_type: AccountType
    description: Optional[str] = Field(default=None, max_length=1000)
    currency_code: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class AccountUpdate(BaseModel):
    """
    Partial update for an account.

    Only fields that were explicitly set are merged. `id` and `user_id`
    are not part of this model, so an update can never change them.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    account_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    bank_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    balance: Optional[Decimal] = Field(default=None, ge=0)
    account_type: Optional[AccountType] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    currency_code: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class Account(BaseModel):
    """
    A stored bank account.

    `user_id` holds the owning username. It is a weak reference: the
    store only enforces ownership by filtering on it.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Owning username")
    account_name: str = Field(..., min_length=1, max_length=200)
    bank_name: str = Field(..., min_length=1, max_length=200)
    balance: Decimal = Field(..., ge=0)
    account_type: AccountType
    # Optional only because records written before these fields existed
    # lack them; the store backfills them on read.
    currency_code: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_serializer("balance", when_used="json")
    def serialize_balance(self, balance: Decimal) -> float:
        return float(balance)

    @property
    def is_categorized(self) -> bool:
        return self.category is not None

    def uses_locale(self, country: CountryInfo) -> bool:
        """True if the record is held in the given country's currency."""
        return (
            self.currency_code == country.currency_code
            and self.country == country.code
        )


# =============================================================================
# CATEGORIZATION
# =============================================================================

class CategorizationRequest(BaseModel):
    """Input to the remote categorization call."""

    account_name: str
    account_description: str = ""


class CategorizationResult(BaseModel):
    """Label and confidence returned by the remote categorization call."""

    category: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
