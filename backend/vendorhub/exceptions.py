"""
VendorHub Media Backend — Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions for the upload and imaging workflow.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by the imaging layer and services; caught by global handlers.

Exception Hierarchy:
    VendorHubError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── InvalidImageInput    → 400 Bad Request (bytes are not an image)
    └── FileStorageError         → 500 Internal Server Error

Note:
    An image that cannot be compressed under its byte ceiling is NOT an error.
    The normalizer returns its best effort with `ceiling_satisfied=False`.
"""

from typing import Any, Dict, Optional


class VendorHubError(Exception):
    """
    Base exception for all VendorHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VendorHubError):
    """
    Raised when client input fails validation.

    When:    Empty upload, size exceeded, unknown output format, malformed data URL.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Unsupported output format 'gif'. Allowed: jpeg, jpg, png, webp",
            "details": {"field": "format"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidImageInput(ValidationError):
    """
    Raised when input bytes cannot be decoded as a raster image.

    What:    The only hard failure of the image normalizer.
    When:    Empty buffer, truncated file, non-image payload, decompression bomb.
    HTTP:    400 Bad Request
    Retry:   Never; the normalizer is deterministic for a given input.
    """

    def __init__(
        self,
        message: str = "The uploaded data is not a valid image",
        field: Optional[str] = "file",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field=field, context=context)


class FileStorageError(VendorHubError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error

    Recovery:
        - Log the error with full file path and OS error for debugging
        - Return generic message to client (don't expose file system paths)
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
