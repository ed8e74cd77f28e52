"""
Custom exceptions for the SPTS platform.
"""

from typing import Optional, Any, Dict


class SptsException(Exception):
    """Base exception for all SPTS-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class RangeError(SptsException):
    """Raised when a score or weight falls outside its allowed bounds."""
    pass


class ValidationError(SptsException):
    """Raised when data validation fails."""
    pass


class UnknownScaleError(ValidationError):
    """Raised when a grading-scale identifier is not recognised."""
    pass


class NotFoundError(SptsException):
    """Raised when a requested resource is not found."""
    pass


class StateConflictError(SptsException):
    """Raised when an operation is not allowed in the entity's current state."""
    pass


class ConcurrencyError(SptsException):
    """Raised when concurrency control fails."""
    pass


class NotificationError(SptsException):
    """Raised when a grade-change handler fails during notification."""
    pass


class PersistenceError(SptsException):
    """Raised when persistence operations fail."""
    pass


class ConfigurationError(SptsException):
    """Raised when configuration is invalid."""
    pass
