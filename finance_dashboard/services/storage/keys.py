"""Fixed storage keys for everything the dashboard persists."""

from typing import Optional

from finance_dashboard.config import get_settings


class StorageKeys:
    """
    Key layout under a common prefix:

        <prefix>.users               roster of all users
        <prefix>.logged_in_user      current session marker
        <prefix>.bank_accounts       accounts of every user
        <prefix>.account_index       username -> owned account ids
        <prefix>.settings.<username> per-user settings blob
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or get_settings().storage.key_prefix

    @property
    def users(self) -> str:
        return f"{self.prefix}.users"

    @property
    def logged_in_user(self) -> str:
        return f"{self.prefix}.logged_in_user"

    @property
    def bank_accounts(self) -> str:
        return f"{self.prefix}.bank_accounts"

    @property
    def account_index(self) -> str:
        return f"{self.prefix}.account_index"

    @property
    def settings_prefix(self) -> str:
        return f"{self.prefix}.settings."

    def user_settings(self, username: str) -> str:
        return f"{self.settings_prefix}{username}"
