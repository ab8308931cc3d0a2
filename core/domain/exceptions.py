"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""
from typing import Iterable, Optional


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


class NotFoundError(DomainException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class LicenseNotFoundError(NotFoundError):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, code="USER_NOT_FOUND")


class BrandNotFoundError(NotFoundError):
    """Raised when a brand is not found."""

    def __init__(self, message: str = "Brand not found"):
        super().__init__(message, code="BRAND_NOT_FOUND")


class LicenseTypeNotFoundError(NotFoundError):
    """Raised when a license type is not found."""

    def __init__(self, message: str = "License type not found"):
        super().__init__(message, code="LICENSE_TYPE_NOT_FOUND")


class ConflictError(DomainException):
    """Raised when an operation would violate a uniqueness rule."""

    def __init__(self, message: str = "Resource already exists", code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateLicenseError(ConflictError):
    """Raised when the store rejects a license insert on a unique index."""

    def __init__(self, message: str = "License already exists"):
        super().__init__(message, code="DUPLICATE_LICENSE")


class InactiveResourceError(DomainException):
    """Raised when a referenced license type or brand is not active."""

    def __init__(
        self,
        message: str = "Resource is not active",
        resource_names: Optional[Iterable[str]] = None,
    ):
        super().__init__(message, code="INACTIVE_RESOURCE")
        self.resource_names = list(resource_names or [])


class LicenseStateError(DomainException):
    """Base exception for rejected license status transitions."""

    pass


class AlreadyInStateError(LicenseStateError):
    """Raised when a transition targets the license's current status."""

    def __init__(self, message: str = "License is already in the requested state"):
        super().__init__(message, code="ALREADY_IN_STATE")


class InvalidTransitionError(LicenseStateError):
    """Raised when a transition is not allowed from the current status."""

    def __init__(self, message: str = "Invalid license status transition"):
        super().__init__(message, code="INVALID_TRANSITION")


class ConfigurationError(DomainException):
    """Raised when a component is configured with unusable options."""

    def __init__(self, message: str = "Invalid configuration"):
        super().__init__(message, code="CONFIGURATION_ERROR")


class ValidationError(DomainException):
    """Raised when malformed input reaches a domain operation."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="VALIDATION_ERROR")
