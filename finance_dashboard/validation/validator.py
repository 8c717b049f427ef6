"""
Input Validation

All user input is checked here before a store reads or writes
anything. Failures raise ValidationError with a message that can be
shown to the user directly.

IMPORTANT: Validation NEVER silently fixes input. Whitespace stripping
done by the models is the only normalization.
"""

from typing import Any, Mapping, Optional, TypeVar, Union

import pydantic
from pydantic import BaseModel

from finance_dashboard.config import AppSettings, get_settings
from finance_dashboard.errors import ValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)


def describe_pydantic_error(error: pydantic.ValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for issue in error.errors():
        field = ".".join(str(loc) for loc in issue["loc"]) or "input"
        parts.append(f"{field}: {issue['msg']}")
    return "; ".join(parts)


class InputValidator:
    """Validates usernames, passwords and account payloads."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def require_username(self, username: Optional[str]) -> str:
        if not username or not username.strip():
            raise ValidationError("Username is required.")
        return username

    def validate_new_username(self, old_username: str, new_username: Optional[str]) -> str:
        """
        Check a rename target.

        Raises:
            ValidationError: If the new username is too short or unchanged
        """
        min_length = self._settings.min_username_length
        if not new_username or len(new_username) < min_length:
            raise ValidationError(
                f"Username must be at least {min_length} characters long."
            )
        if new_username == old_username:
            raise ValidationError("New username must be different from the current one.")
        return new_username

    def validate_new_password(self, new_password: Optional[str]) -> str:
        min_length = self._settings.min_password_length
        if not new_password or len(new_password) < min_length:
            raise ValidationError(
                f"Password must be at least {min_length} characters long."
            )
        return new_password

    def parse(
        self,
        model: type[ModelT],
        data: Union[ModelT, Mapping[str, Any]],
    ) -> ModelT:
        """
        Coerce a payload into `model`.

        Instances of `model` pass through unchanged.

        Raises:
            ValidationError: If the payload does not fit the model
        """
        if isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid {model.__name__}: {describe_pydantic_error(e)}")
