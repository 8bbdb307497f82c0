"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing message used in API responses.
"""

from enum import Enum
from typing import Any, Dict


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    FILE_TOO_LARGE = "file_too_large"
    STORAGE_ERROR = "storage_error"
    LAUNCH_ERROR = "launch_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded torrent file exceeds the maximum allowed size.",
        "action": "Torrent descriptors are small; check that the right file was selected.",
    },
    ErrorCategory.STORAGE_ERROR: {
        "title": "Storage Error",
        "message": "The uploaded torrent could not be saved on the server.",
        "action": "Please try again later. If the problem persists, contact the administrator.",
    },
    ErrorCategory.LAUNCH_ERROR: {
        "title": "Download Not Started",
        "message": "The download agent could not be started for this torrent.",
        "action": "Please try again later. If the problem persists, contact the administrator.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap the original error for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class BadRequestError(DomainError):
    """Raised when the upload does not contain a torrent part."""
    pass


class StorageError(DomainError):
    """
    Raised when the torrent descriptor cannot be persisted.

    Covers directory creation, temp file creation and body copy failures.
    """
    pass


class LaunchError(DomainError):
    """Raised when the download agent process cannot be started."""
    pass


class SweepError(DomainError):
    """
    Raised for a failed enumeration or deletion during retention cleanup.

    Never surfaced to HTTP callers; collected in sweep reports and logged.
    """

    def __init__(self, message: str, path: str = "", original_error: Exception = None):
        super().__init__(message, original_error)
        self.path = path


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(self, category: ErrorCategory):
        self.category = category

        error_info = ERROR_MESSAGES[category]
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    status_code: int = 500,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Technical details are logged by the caller; the body only carries the
    user-facing message for the category.

    Returns:
        Tuple of (error_dict, status_code)
    """
    return ApplicationError(category).to_dict(), status_code
