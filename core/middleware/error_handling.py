"""
Error handling middleware with security-compliant error sanitization.
Prevents sensitive data leakage while providing useful error information.

Every error leaves the service with the same body:

    {"error": <message>, "code": <MACHINE_CODE>, "path": ..., "method": ...,
     "details": ... (optional), "request_id": ... (optional)}
"""

import logging
import traceback
from typing import Any, Callable, Optional
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
import re

from core.errors import RecruitmentError
from core.identity import IdentityNotResolved

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
}


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include detailed error information (only in dev)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }

    if include_details:
        # Only include stack trace in development
        details["traceback"] = traceback.format_exc()

    return details


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Format pydantic validation errors into a user-friendly structure.

    The ``body`` prefix FastAPI adds to locations is dropped.
    """
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        formatted.append({
            "field": ".".join(loc),
            "message": sanitize_error_message(error.get("msg", "")),
            "type": error.get("type", "value_error"),
        })
    return formatted


def _http_exception_message(exc: StarletteHTTPException) -> str:
    detail = exc.detail
    if isinstance(detail, dict):
        detail = detail.get("error") or detail.get("message") or detail
    return sanitize_error_message(detail)


def classify_exception(
    exc: Exception, request_method: str, request_path: str, debug: bool = False
) -> tuple[int, str, str, Optional[Any]]:
    """
    Map an exception to ``(status_code, code, message, details)`` and log it
    at the matching severity.
    """
    details = None

    if isinstance(exc, RecruitmentError):
        status_code = exc.status_code
        error_code = exc.code
        message = sanitize_error_message(exc.message)
        details = exc.details
        if status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {request_method} {request_path} - {message}",
                exc_info=True
            )
        else:
            logger.warning(
                f"{type(exc).__name__}: {request_method} {request_path} - "
                f"Status: {status_code}, Message: {message}"
            )

    elif isinstance(exc, IdentityNotResolved):
        status_code = status.HTTP_401_UNAUTHORIZED
        error_code = "UNAUTHORIZED"
        message = "Unauthorized"
        logger.warning(f"Unresolved identity: {request_method} {request_path}")

    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        error_code = HTTP_ERROR_CODES.get(status_code, "HTTP_EXCEPTION")
        message = _http_exception_message(exc)
        logger.warning(
            f"HTTP exception: {request_method} {request_path} - "
            f"Status: {status_code}, Message: {message}"
        )

    elif isinstance(exc, (RequestValidationError, ValidationError)):
        status_code = status.HTTP_400_BAD_REQUEST
        error_code = "VALIDATION_ERROR"
        message = "Request validation failed"
        details = format_validation_errors(exc.errors())
        logger.warning(
            f"Validation error: {request_method} {request_path} - "
            f"Errors: {details}"
        )

    elif isinstance(exc, IntegrityError):
        status_code = status.HTTP_409_CONFLICT
        error_code = "CONFLICT"
        message = "The request conflicts with an existing record"
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(
            f"Database integrity error: {request_method} {request_path}",
            exc_info=not debug
        )

    elif isinstance(exc, OperationalError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        error_code = "UPSTREAM_FAILURE"
        message = "Database service temporarily unavailable"
        logger.error(
            f"Database operational error: {request_method} {request_path}",
            exc_info=True
        )

    elif isinstance(exc, SQLAlchemyError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "DATABASE_ERROR"
        message = "A database error occurred"
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(
            f"SQLAlchemy error: {request_method} {request_path}",
            exc_info=not debug
        )

    elif isinstance(exc, TimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
        error_code = "TIMEOUT"
        message = "The request timed out"
        logger.error(f"Timeout error: {request_method} {request_path}")

    else:
        # Generic exception handler
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(
            f"Unhandled exception: {request_method} {request_path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True
        )

    return status_code, error_code, message, details


def build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    path: str,
    method: str,
    details: Any = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Build the JSON error body shared by every handler."""
    content: dict[str, Any] = {
        "error": message,
        "code": error_code,
        "path": path,
        "method": method,
    }
    if details is not None:
        content["details"] = details
    if request_id:
        content["request_id"] = request_id

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


class ErrorHandlingMiddleware:
    """
    Comprehensive error handling middleware with security compliance.

    Features:
    - Sanitizes error messages to prevent sensitive data leakage
    - Provides structured error responses
    - Handles all exception types gracefully
    - Logs errors with appropriate severity
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            # Handle the exception and send error response
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        """
        Handle different types of exceptions and return appropriate responses.
        """
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        status_code, error_code, message, details = classify_exception(
            exc, request_method, request_path, debug=self.debug
        )

        # Add request ID if available
        request_id = None
        if "headers" in scope:
            headers = dict(scope["headers"])
            raw_id = headers.get(b"x-request-id")
            if raw_id:
                request_id = raw_id.decode()
        request_id = scope.get("state", {}).get("request_id", request_id)

        return build_error_response(
            status_code, error_code, message, request_path, request_method,
            details=details, request_id=request_id,
        )


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether to include detailed error information
    """

    async def _handle(request: Request, exc: Exception) -> JSONResponse:
        status_code, error_code, message, details = classify_exception(
            exc, request.method, str(request.url.path), debug=debug
        )
        return build_error_response(
            status_code, error_code, message,
            str(request.url.path), request.method,
            details=details, request_id=_request_id(request),
        )

    @app.exception_handler(RecruitmentError)
    async def recruitment_error_handler(request: Request, exc: RecruitmentError):
        """Handle domain errors raised by services."""
        return await _handle(request, exc)

    @app.exception_handler(IdentityNotResolved)
    async def identity_error_handler(request: Request, exc: IdentityNotResolved):
        """Unresolvable sessions are always 401."""
        return await _handle(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return await _handle(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        return await _handle(request, exc)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Unique constraint violations surface as conflicts."""
        return await _handle(request, exc)

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        """Database unavailable."""
        return await _handle(request, exc)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        return await _handle(request, exc)
