"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        details: Any = None,
    ):
        """Initialize exception with message, status code and error code."""
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, code=code)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, code=code)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Insufficient permissions", code: str = "FORBIDDEN"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, code=code)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", code: str = "BAD_REQUEST"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code=code)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", code: str = "CONFLICT"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, code=code)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", details: Any = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code="VALIDATION_ERROR", details=details)


class AuthError(AppException):
    """
    Authentication failure carrying a domain error code.

    The HTTP status is chosen by the auth routes from the code, so services
    raise these without knowing how they are rendered.
    """

    def __init__(self, code: str, message: str):
        """Initialize with the auth error code."""
        super().__init__(message, status_code=400, code=code)

    def with_status(self, status_code: int) -> "AuthError":
        """Return the same error bound to an HTTP status."""
        self.status_code = status_code
        return self
