"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messaging for the API layer.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    QUOTA_EXCEEDED = "quota_exceeded"
    PASSWORD_REQUIRED = "password_required"
    PASSWORD_INCORRECT = "password_incorrect"
    PLAN_REQUIRED = "plan_required"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INVALID_REQUEST = "invalid_request"
    FILE_NOT_ALLOWED = "file_not_allowed"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.NOT_FOUND: {
        "title": "Not Found",
        "message": "The requested file or share link could not be found.",
        "action": "Check the link you were given, or ask the owner for a new one.",
    },
    ErrorCategory.EXPIRED: {
        "title": "Link Expired",
        "message": "This file or download link has expired.",
        "action": "Ask the owner to share the file again.",
    },
    ErrorCategory.QUOTA_EXCEEDED: {
        "title": "Download Limit Reached",
        "message": "This file has reached its maximum number of downloads.",
        "action": "Ask the owner to raise the limit or create a new link.",
    },
    ErrorCategory.PASSWORD_REQUIRED: {
        "title": "Password Required",
        "message": "This file is password protected.",
        "action": "Enter the password the owner gave you.",
    },
    ErrorCategory.PASSWORD_INCORRECT: {
        "title": "Invalid Password",
        "message": "The password you entered is not correct.",
        "action": "Passwords are case-sensitive. Check it and try again.",
    },
    ErrorCategory.PLAN_REQUIRED: {
        "title": "Plan Required",
        "message": "This file is only available to members of a specific plan.",
        "action": "Upgrade your membership to access this file.",
    },
    ErrorCategory.CONFLICT: {
        "title": "Slug Already Exists",
        "message": "A share link with this slug already exists.",
        "action": "Choose a different slug, or leave it empty to generate one.",
    },
    ErrorCategory.UNAVAILABLE: {
        "title": "Service Unavailable",
        "message": "A storage service is temporarily unavailable.",
        "action": "Please try again in a few moments.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.FILE_NOT_ALLOWED: {
        "title": "File Not Allowed",
        "message": "The uploaded file was rejected by the upload rules.",
        "action": "Check the file name, size and type, then upload again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
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

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class NotFoundError(DomainError):
    """Raised when a file or share link does not exist (or is no longer reachable)."""
    pass


class ConflictError(DomainError):
    """Raised when an explicitly requested slug is already taken."""
    pass


class UnavailableError(DomainError):
    """
    Raised when the policy store or object storage cannot be reached.

    This is the only retryable error class. Policy denials never use it.
    """
    pass


class SlugAllocationError(UnavailableError):
    """Raised when slug generation keeps colliding past the retry bound."""
    pass


class InvalidSlugError(DomainError):
    """Raised when a caller-supplied slug is not a valid URL-safe token."""
    pass


class FileValidationError(DomainError):
    """Raised when an upload fails name, size or type validation."""
    pass


class InvalidRequestError(DomainError):
    """Raised when operation arguments are out of range (e.g. max_uses < 1)."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    This is an application-layer concern that bridges domain errors
    with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
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
        data = {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }
        if self.context:
            data["details"] = self.context
        return data


def category_for_error(error: DomainError) -> ErrorCategory:
    """
    Map a domain exception onto its error category.

    Args:
        error: Domain exception raised by a service

    Returns:
        Matching ErrorCategory (SYSTEM_ERROR for unknown errors)
    """
    if isinstance(error, NotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, ConflictError):
        return ErrorCategory.CONFLICT
    if isinstance(error, UnavailableError):
        return ErrorCategory.UNAVAILABLE
    if isinstance(error, FileValidationError):
        return ErrorCategory.FILE_NOT_ALLOWED
    if isinstance(error, (InvalidSlugError, InvalidRequestError)):
        return ErrorCategory.INVALID_REQUEST
    return ErrorCategory.SYSTEM_ERROR


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
