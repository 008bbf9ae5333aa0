"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing message and the stable
machine-readable category returned by the API.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    FILE_TOO_LARGE = "file_too_large"
    FILE_NOT_FOUND = "file_not_found"
    SYSTEM_ERROR = "system_error"


# User-facing error messages
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "No file uploaded",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "File not found",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "Internal server error",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    category = ErrorCategory.SYSTEM_ERROR

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class BadRequestError(DomainError):
    """Raised when an upload is missing its file or is otherwise malformed."""

    category = ErrorCategory.INVALID_REQUEST


class PayloadTooLargeError(DomainError):
    """
    Raised when an upload exceeds the configured size cap.

    Detected either from the declared request length or while streaming,
    as soon as the running byte count passes the cap.
    """

    category = ErrorCategory.FILE_TOO_LARGE

    def __init__(self, message: str, limit: Optional[int] = None, original_error: Exception = None):
        super().__init__(message, original_error)
        self.limit = limit


class ObjectNotFoundError(DomainError):
    """Raised when an id or storage key is unknown or already expired."""

    category = ErrorCategory.FILE_NOT_FOUND


class WriteError(DomainError):
    """
    Raised when persisting bytes or metadata fails.

    Covers disk full, permission denial, I/O faults, storage key
    collisions and serialization failures.
    """

    category = ErrorCategory.SYSTEM_ERROR


class IndexLockTimeout(WriteError):
    """Raised when the metadata index lock cannot be acquired in time."""
    pass


class CorruptStateError(DomainError):
    """
    Raised when the persisted metadata snapshot cannot be parsed.

    Never escapes the metadata index: the index logs it and degrades
    to an empty mapping.
    """
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP
    responses. Only the fixed message for the category reaches the
    client; the domain error text stays in the server log.
    """

    def __init__(self, category: ErrorCategory):
        self.category = category

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.message,
            "code": self.category.value,
            "title": self.title,
        }


def create_error_response(category: ErrorCategory, status_code: int = 400) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category)
    return error.to_dict(), status_code
