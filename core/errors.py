"""
Domain error taxonomy.

Every error raised by services carries the HTTP status and machine-readable
code it is translated to at the API boundary (see
``core.middleware.error_handling``).
"""

from typing import Any, Optional


class RecruitmentError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class UnauthorizedError(RecruitmentError):
    """No valid session, or the session cannot be attributed to a user."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(RecruitmentError):
    """Valid session, but the wrong owner or role for the resource."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "You don't have permission to perform this action"


class NotFoundError(RecruitmentError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(RecruitmentError):
    """Lifecycle or uniqueness violation."""

    status_code = 409
    code = "CONFLICT"
    default_message = "The request conflicts with the current state of the resource"


class ValidationFailedError(RecruitmentError):
    """Malformed or incomplete payload."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class UpstreamFailure(RecruitmentError):
    """Database or storage unavailable."""

    status_code = 503
    code = "UPSTREAM_FAILURE"
    default_message = "A backing service is temporarily unavailable"
