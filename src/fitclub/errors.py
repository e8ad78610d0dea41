from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class InvalidTokenError(UserError):
    """Raised when a password reset token is unknown or already used."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class ExpiredTokenError(UserError):
    """Raised when a password reset token exists but has expired."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class ServiceError(UserError):
    """Raised when a backing service fails; the message stays generic."""

    def __init__(self, message: str = "A system error occurred, please try again later") -> None:
        super().__init__(message)
