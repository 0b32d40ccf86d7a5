"""
Custom Exceptions for the Placement Workflow Engine

Hierarchical exception classes for proper error handling across layers.
Transition rejections are returned as values (see app.domain.workflow);
these exceptions cover creation requests and infrastructure failures.
"""

from typing import Optional, Dict, Any


class PlacementWorkflowError(Exception):
    """Base exception for all placement workflow errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(PlacementWorkflowError):
    """Raised when input validation fails."""
    pass


class ForbiddenError(PlacementWorkflowError):
    """Raised when the acting principal may not perform an operation."""

    def __init__(
        self,
        message: str,
        role: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if role:
            details["role"] = role
        super().__init__(message, details, original_error)


class DatabaseError(PlacementWorkflowError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class DuplicateError(DatabaseError):
    """Raised when attempting to create a duplicate resource."""
    pass


class ConflictError(DatabaseError):
    """Raised when an optimistic version check or capacity check fails."""
    pass


class StoreFailureError(DatabaseError):
    """Raised when a transactional write failed after the internal retry."""

    def __init__(
        self,
        message: str,
        attempts: int = 1,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, operation=operation, original_error=original_error)
        self.details["attempts"] = attempts


class ConfigurationError(PlacementWorkflowError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
