"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "internal"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Serialize the error for a JSON response body."""
        return {"code": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "invalid-argument"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when the caller identity is missing or cannot be verified."""

    code = "unauthenticated"

    def __init__(self, message="User must be authenticated."):
        """Initialize the error."""
        super().__init__(message, 401)


class AuthorizationError(AppError):
    """Raised when the caller lacks rights over the target resource."""

    code = "permission-denied"

    def __init__(self, message="You are not allowed to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not-found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class InvalidStateError(AppError):
    """Raised when a resource is in the wrong lifecycle state for an operation."""

    code = "failed-precondition"

    def __init__(self, message="Resource is in the wrong state."):
        """Initialize the error."""
        super().__init__(message, 409)


class PreconditionError(AppError):
    """Raised when a validity check fails before a mutating operation begins."""

    code = "failed-precondition"

    def __init__(self, message="Precondition failed."):
        """Initialize the error."""
        super().__init__(message, 412)


class IntegrityError(AppError):
    """Raised when an expected downstream record is missing or inconsistent."""

    code = "data-loss"

    def __init__(self, message="Stored data is inconsistent."):
        """Initialize the error."""
        super().__init__(message, 500)
