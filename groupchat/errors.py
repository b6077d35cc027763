"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation before any remote call."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthError(AppError):
    """Raised when the identity provider rejects a credential."""

    def __init__(self, message="Auth error", status_code=401):
        """Initialize the error."""
        super().__init__(message, status_code)


class DuplicateUsernameError(AuthError):
    """Raised when registering with a username that is already taken."""

    def __init__(self, message="Username already taken."):
        """Initialize the error."""
        super().__init__(message, 409)


class QueryError(AppError):
    """Raised when a live query subscription fails."""

    def __init__(self, message="Query failed."):
        """Initialize the error."""
        super().__init__(message, 502)


class CacheError(AppError):
    """Raised by the local key-value store on read or write failure."""

    def __init__(self, message="Cache unavailable."):
        """Initialize the error."""
        super().__init__(message, 500)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)
