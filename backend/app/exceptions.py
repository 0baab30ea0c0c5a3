"""
DevCamper Backend — Custom Exception Hierarchy
================================================

What:  The errors DevCamper raises on purpose, each bound to one HTTP status.
How:   Every class carries a client-safe `message`, a `context` dict that is
       only ever logged, and `status_code`. The handlers in main.py turn them
       into `{"success": false, "error": message, "request_id": ...}`.
Who:   Services, dependencies and the auth resolver raise them. Routes let
       them propagate untouched.

Exception Hierarchy:
    DevCamperError (base)
    ├── ValidationError          → 400 Bad Request (bad input or business rule)
    ├── UnauthorizedError        → 401 Unauthorized (missing/invalid credential)
    ├── ForbiddenError           → 403 Forbidden (role or ownership violation)
    ├── NotFoundError            → 404 Not Found (also malformed ids)
    ├── FileStorageError         → 500 Internal Server Error
    ├── GeocodingError           → 500 Internal Server Error
    └── EmailDeliveryError       → 500 Internal Server Error

No error is retried. Every one of them is terminal for the request.
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        context:      Additional debug info (logged but NOT returned to client)
        status_code:  HTTP status the global handler responds with
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        # Context is logged server-side only; never serialized into a response
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input fails validation or a business rule.

    When:    Malformed query syntax, duplicate bootcamp ownership, bad upload,
             invalid reset token, missing login fields.
    HTTP:    400 Bad Request
    """

    status_code = 400

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


class UnauthorizedError(DevCamperError):
    """
    Raised when a request carries no usable credential.

    The default message is deliberately identical for every cause (missing
    header, malformed token, bad signature, expired token, deleted user) so
    callers cannot probe which one applied.
    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DevCamperError):
    """
    Raised when an authenticated identity is not allowed to perform an action.

    When:    Role outside the required set, or mutation of a resource owned by
             someone else by a non-admin.
    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DevCamperError):
    """
    Raised when a row looked up by id, email or token is missing.

    SQLAlchemy returns None for missing rows (not an exception). Services
    convert None → NotFoundError so the global handler can answer 404.
    Malformed ids are treated the same way as ids that match nothing.
    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource.capitalize()} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(DevCamperError):
    """
    Raised when a photo cannot be written, or its type cannot be sniffed.

    When:    Upload directory missing or read-only, disk full, libmagic failure.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocodingError(DevCamperError):
    """
    Raised when the geocoding provider cannot be reached or answers with an error.

    A lookup that succeeds but matches nothing is a NotFoundError instead.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Location lookup failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(DevCamperError):
    """
    Raised when an outgoing email (password reset) could not be handed to SMTP.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Email could not be sent",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

