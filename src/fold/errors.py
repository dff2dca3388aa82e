from abc import ABC
from typing import Any


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.

    When ``title`` is set it becomes the short ``error`` label of the
    response and the message is sent separately, otherwise the message
    itself is the label.
    """

    title: str | None = None


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails or is missing."""

    title = "Unauthorized"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""

    def __init__(self, message: str = "Validation failed", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details


class PasswordChangeError(ValidationError):
    """Raised when the auth module refuses a password change."""

    title = "Password change failed"


class RateLimitError(UserError):
    """Raised when a client exceeds the auth endpoint rate limit."""

    title = "Too Many Requests"

    def __init__(self, message: str = "Too many requests. Please try again later.") -> None:
        super().__init__(message)


class UpstreamError(UserError):
    """Raised when the storage provider rejects a request for a reason other than a missing file."""
