"""
User and Session Models

A User is a roster entry. A Session is the single "logged in" marker,
created at signup/login and cleared at logout.

NOTE: Passwords are accepted by the session store but never modelled
or persisted here. This is a mock authentication layer.

All three models are stored with camelCase keys (`avatarDataUrl`,
`startedAt`, `emailNotifications`) and read back from either spelling.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    """
    A registered user.

    `username` is the unique, case-sensitive key used for ownership of
    accounts. `id` is an opaque identifier that survives renames.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(
        default_factory=_new_id,
        description="Opaque user identifier (stable across renames)"
    )
    username: str = Field(
        ...,
        min_length=1,
        description="Unique username (case-sensitive)"
    )
    avatar_data_url: Optional[str] = Field(
        default=None,
        description="Embedded avatar image as a data URL"
    )


class Session(BaseModel):
    """The current session marker."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str = Field(default_factory=_new_id)
    user: User
    started_at: datetime = Field(default_factory=_utcnow)

    @property
    def username(self) -> str:
        return self.user.username


class Theme(str, Enum):
    """UI theme preference."""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class UserSettings(BaseModel):
    """Per-user settings blob. Missing fields fall back to these defaults."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    theme: Theme = Theme.SYSTEM
    email_notifications: bool = True
    push_notifications: bool = False
    share_data: bool = True
