"""
Finance Dashboard Errors

Every refused operation raises one of these with a human-readable
message meant to be shown to the user as-is.
"""


class FinanceDashboardError(Exception):
    """Base exception for store operations."""
    pass


class ValidationError(FinanceDashboardError):
    """Malformed input, caught before any write."""
    pass


class DuplicateUsernameError(FinanceDashboardError):
    """The username is already taken."""
    pass


class UserNotFoundError(FinanceDashboardError):
    """No roster entry has this username."""
    pass


class NotAuthenticatedError(FinanceDashboardError):
    """The operation needs a logged-in user and there is none."""
    pass


class NotFoundError(FinanceDashboardError):
    """No account with this id is owned by the session user."""
    pass
