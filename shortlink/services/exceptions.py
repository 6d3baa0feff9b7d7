"""Exceptions for the shortlink service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""

from enum import Enum


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class ValidationRule(str, Enum):
    """The URL validation rule that rejected an input."""
    EMPTY = "empty"
    TOO_LONG = "too_long"
    MALFORMED = "malformed"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    DISALLOWED_HOST = "disallowed_host"


class URLError(ServiceError):
    """Base exception for URL-related errors."""
    pass


class URLValidationError(URLError):
    """URL failed validation checks."""
    pass


class InvalidURLError(URLValidationError):
    """The submitted URL was rejected; ``rule`` names the failed check."""

    def __init__(self, message: str, rule: ValidationRule):
        self.rule = rule
        super().__init__(message)


class URLCreationError(URLError):
    """Error occurred during URL creation."""
    pass


class ShortCodeGenerationError(URLCreationError):
    """Every insert attempt collided with an existing short code."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to generate a unique short code after {attempts} attempts"
        )


class StorageError(ServiceError):
    """A persistence operation failed for a reason other than a code collision."""
    pass
