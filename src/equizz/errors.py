from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.

    `code` is a machine-readable identifier clients can switch on.
    """

    code: str = "BAD_REQUEST"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, message: str = "Document not found", code: str | None = None) -> None:
        super().__init__(message, code)


class AuthenticationError(UserError):
    """Raised when authentication fails.

    `requires_refresh` tells the client a silent token refresh may succeed,
    `requires_login` tells it to send the user back to the login screen.
    """

    code = "AUTHENTICATION_FAILED"
    requires_refresh = False
    requires_login = False

    def __init__(self, message: str = "Authentication failed", code: str | None = None) -> None:
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NoTokenError(AuthenticationError):
    code = "NO_TOKEN"
    requires_login = True

    def __init__(self, message: str = "Not authorized, no token") -> None:
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    code = "TOKEN_EXPIRED"
    requires_refresh = True

    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message)


class TokenInvalidError(AuthenticationError):
    code = "TOKEN_INVALID"
    requires_login = True

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class SessionInvalidError(AuthenticationError):
    code = "SESSION_INVALID"
    requires_login = True

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message)


class InvalidRefreshTokenError(AuthenticationError):
    code = "REFRESH_TOKEN_INVALID"
    requires_login = True

    def __init__(self, message: str = "Invalid or expired refresh token") -> None:
        super().__init__(message)


class UserNotFoundError(AuthenticationError):
    code = "USER_NOT_FOUND"
    requires_login = True

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""

    code = "ACCESS_DENIED"


class ValidationError(UserError):
    """Raised when user input fails validation."""

    code = "VALIDATION_ERROR"


class DuplicateSubmissionError(ValidationError):
    """Raised when a student submits the same quiz a second time."""

    code = "DUPLICATE_SUBMISSION"

    def __init__(self, message: str = "Quiz already submitted") -> None:
        super().__init__(message)


class StoreUnavailableError(Exception):
    """Raised when a persistence operation fails.

    Not a UserError: the underlying driver message is logged, never shown.
    """

    code = "STORE_UNAVAILABLE"
