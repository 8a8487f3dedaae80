"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. The query pipeline raises the
halt exceptions below from its stages and converts them into a failure
response at the service entry points.
"""

from typing import Optional, Sequence, Any


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class ServiceUnavailable(ExternalServiceException):
    """A collaborator (ticket store, role directory) is missing or unreachable."""


# ========== Pipeline halts ==========

class IntentNotRecognized(DomainException):
    """No intent scored above the confidence threshold."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__("Could not understand query", details)


class PermissionDenied(DomainException):
    """The actor's role does not grant the recognized intent."""

    def __init__(self, intent: Any, role: str, details: Optional[dict] = None):
        self.intent = intent
        self.role = role
        code = getattr(intent, "value", intent)
        super().__init__(
            f"Permission denied for intent {code}",
            details or {"intent": str(code), "role": role}
        )


class EntityExtractionOrValidationFailed(DomainException):
    """Entities could not be extracted, or failed validation for the intent."""

    def __init__(self, errors: Sequence[str] = (), details: Optional[dict] = None):
        self.errors = list(errors)
        message = "Failed to extract or validate entities"
        if self.errors:
            message += ": " + "; ".join(self.errors)
        super().__init__(message, details or {"errors": self.errors})


class OperationFailed(DomainException):
    """The dispatched operation reported a failure."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, details)
