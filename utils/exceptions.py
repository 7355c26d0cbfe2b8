"""
Custom Exception Classes for the Reelcast Client

This module defines custom exceptions for better error handling and
categorization of failures across the application, plus the error-kind
enumeration that the remote adapter assigns to every failed call.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Classification of a failed remote call."""
    PERMISSION_DENIED = "permission_denied"
    NETWORK = "network"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_FORMAT = "unsupported_format"
    EXTENSION_NOT_ALLOWED = "extension_not_allowed"
    UNAUTHORIZED = "unauthorized"
    QUOTA_EXCEEDED = "quota_exceeded"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


# Kinds where another attempt cannot succeed
NON_RETRYABLE_KINDS = frozenset({
    ErrorKind.PERMISSION_DENIED,
    ErrorKind.UNAUTHORIZED,
    ErrorKind.EXTENSION_NOT_ALLOWED,
})

# User-facing text for each kind, shown instead of the raw remote error
USER_MESSAGES = {
    ErrorKind.PERMISSION_DENIED: "Permission denied. Please check your app permissions in Settings.",
    ErrorKind.NETWORK: ("Network error. Please check your internet connection and try again. "
                        "If the problem persists, try restarting the app."),
    ErrorKind.FILE_TOO_LARGE: "File too large. Please select a smaller file.",
    ErrorKind.UNSUPPORTED_FORMAT: "Unsupported file format. Please select a valid file.",
    ErrorKind.EXTENSION_NOT_ALLOWED: ("File extension not supported. Please try recording again "
                                      "or select a different file."),
    ErrorKind.UNAUTHORIZED: "Authentication error. Please log out and log back in.",
    ErrorKind.QUOTA_EXCEEDED: "Storage limit reached. Please contact support.",
    ErrorKind.NOT_FOUND: "The requested item could not be found.",
    ErrorKind.UNKNOWN: "Failed to upload file. Please try again.",
}


class ReelcastError(Exception):
    """Base exception for all Reelcast client errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ReelcastError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Remote Service Errors
# =============================================================================

class RemoteServiceError(ReelcastError):
    """Raised when a call to the hosted backend fails.

    Attributes:
        kind: The ErrorKind assigned at the adapter boundary.
        code: HTTP status code, if a response was received.
        error_type: The backend's machine-readable error type, if any.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN,
                 code: Optional[int] = None, error_type: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.error_type = error_type

    @property
    def retryable(self) -> bool:
        return self.kind not in NON_RETRYABLE_KINDS


class DocumentNotFoundError(RemoteServiceError):
    """Raised when a requested document or file does not exist."""

    def __init__(self, message: str, code: Optional[int] = 404, error_type: Optional[str] = None):
        super().__init__(message, ErrorKind.NOT_FOUND, code, error_type)


class RetryExhaustedError(ReelcastError):
    """Raised when every attempt of a retried operation failed.

    The final error is available as ``last_error`` and as ``__cause__``.
    """

    def __init__(self, attempts: int, last_error: Exception):
        super().__init__(f"All {attempts} attempts failed: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class DocumentDecodeError(ReelcastError):
    """Raised when a remote document does not match the expected record shape."""
    pass


# =============================================================================
# Media Errors
# =============================================================================

class MediaUploadError(ReelcastError):
    """Raised when a media upload fails.

    The message is the user-facing text for ``kind``; the underlying error is
    chained as ``__cause__``.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind


class MissingMediaError(ReelcastError):
    """Raised when required media was not supplied."""
    pass


# =============================================================================
# Session and Social Errors
# =============================================================================

class NotAuthenticatedError(ReelcastError):
    """Raised when an operation needs a signed-in user and there is none."""
    pass


class NotificationError(ReelcastError):
    """Raised when a notification record cannot be created."""
    pass


class InvalidOperationError(ReelcastError):
    """Raised when a request is well-formed but not allowed."""
    pass
