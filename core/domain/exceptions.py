"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainException):
    """Raised when a required field is missing or a precondition fails."""

    def __init__(self, message: str = "Invalid request", code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class NotFoundError(DomainException):
    """Raised when a user, customer or license cannot be found."""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class LicenseNotFoundError(NotFoundError):
    """Raised when a user has no valid license."""

    def __init__(self, message: str = "No license found for this user"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class UpstreamError(DomainException):
    """
    Raised when a call to the billing provider fails.

    The message may contain provider details; the API layer redacts it
    outside of development mode.
    """

    def __init__(self, message: str = "Billing provider request failed"):
        super().__init__(message, code="UPSTREAM_ERROR")


class SignatureError(DomainException):
    """Raised when a webhook payload fails signature verification."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE")
