"""
Jotter Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the note API's failure modes.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{success: false, error: ...}` envelopes with the right status.
Who:   Raised by services and the database layer; caught by global handlers.

Exception Hierarchy:
    JotterError (base)
    ├── ValidationError              → 400 Bad Request (client can fix)
    │   └── InvalidIdentifierError   → 400 Bad Request (malformed note id)
    ├── NotFoundError                → 404 Not Found
    └── StoreError                   → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class JotterError(Exception):
    """
    Base exception for all Jotter application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(JotterError):
    """
    Raised when a note payload fails validation.

    When:    Missing subject, over-length fields, empty content, wrong types.
    HTTP:    400 Bad Request
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


class InvalidIdentifierError(ValidationError):
    """
    Raised when a note id is not a well-formed UUID.

    Detected before any store access, so a malformed id never costs a query.
    HTTP:    400 Bad Request
    """

    def __init__(self, identifier: str = "", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["identifier"] = identifier
        super().__init__(message="Invalid note ID format", field="id", context=ctx)
        self.identifier = identifier


class NotFoundError(JotterError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /notes/{id} with a well-formed but unknown id.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "Note",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(JotterError):
    """
    Raised when the note store fails (connectivity or statement errors).

    HTTP:    500 Internal Server Error

    Security Note:
        The message is an operation-level summary ("Failed to update note").
        Driver errors, SQL text and constraint names go to the server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
