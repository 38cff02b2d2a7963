"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "app_error"

    def __init__(self, message, status_code=400, details=None):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def to_dict(self):
        """Render the error envelope returned by the API."""
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "validation_error"

    def __init__(self, message="Validation failed.", details=None):
        """Initialize the error."""
        super().__init__(message, 400, details)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    code = "conflict"

    def __init__(self, message="Resource already exists.", details=None):
        """Initialize the error."""
        super().__init__(message, 409, details)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "not_found"

    def __init__(self, message="Resource not found.", details=None):
        """Initialize the error."""
        super().__init__(message, 404, details)
