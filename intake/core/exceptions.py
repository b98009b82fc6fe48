"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import List, Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str,
        errors: Optional[dict[str, List[str]]] = None,
        details: Optional[dict] = None
    ):
        self.errors = errors or {}
        super().__init__(message, details)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationException":
        """Build an exception carrying a single field error."""
        return cls(f"Invalid value for '{field}'", errors={field: [message]})

    @classmethod
    def from_error_list(cls, message: str, error_list: List[dict]) -> "ValidationException":
        """
        Build from pydantic/FastAPI style error dicts.

        Locations are joined into field names; the 'query'/'body' prefix that
        FastAPI adds is dropped.
        """
        errors: dict[str, List[str]] = {}
        for error in error_list:
            loc = [str(part) for part in error.get("loc", ()) if part not in ("query", "body", "path")]
            field = ".".join(loc) or "__root__"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        return cls(message, errors=errors)

    @property
    def fields(self) -> List[str]:
        """Names of the offending fields."""
        return list(self.errors)


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


class DuplicateSubmissionException(DomainException):
    """Raised when the same email sends the same message twice in a short window."""

    def __init__(self, contact_id: str, details: Optional[dict] = None):
        self.contact_id = contact_id
        super().__init__(
            "Duplicate submission detected. Please wait before submitting again.",
            details or {"contact_id": contact_id}
        )


class ContactIdGenerationExhausted(DomainException):
    """Raised when no free contact id was found within the attempt cap."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not generate a unique contact id after {attempts} attempts",
            {"attempts": attempts}
        )


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

