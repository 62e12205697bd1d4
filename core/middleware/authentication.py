"""
Authentication middleware for verifying session tokens.

This middleware:
1. Validates the JWT from the Authorization header on protected paths
2. Places the decoded claims on the request scope as the session
3. Rejects missing, expired or invalid tokens with a 401 JSON error

It does not decide who the user is. The claims may carry the user id in
several places; ``api.dependencies.get_current_user`` resolves it.
"""

import logging
from typing import Any, Callable, Optional
import jwt
from fastapi import Request, status

from core.config import settings
from core.middleware.error_handling import build_error_response
from core.security import verify_jwt_token, JWTPayload

logger = logging.getLogger(__name__)

# Public endpoints that don't require authentication (any method)
PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
]

# Prefixes that are public for every method
PUBLIC_PREFIXES = ["/health", "/docs", "/redoc", "/uploads/"]

# Public routes below the API prefix
PUBLIC_API_ENDPOINTS = ["/auth/login", "/auth/register"]

# Prefixes below the API prefix that are public for reads only
PUBLIC_API_READ_PREFIXES = ["/vacancies"]


class AuthenticationError(Exception):
    """Base exception for authentication errors."""


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is missing or invalid."""


class AuthenticationMiddleware:
    """
    Authentication middleware that validates session tokens.
    """

    def __init__(
        self,
        app: Callable,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        api_prefix: Optional[str] = None,
    ):
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            jwt_secret: Secret key for JWT verification
            jwt_algorithm: JWT signing algorithm
            api_prefix: Prefix the API routers are mounted under
                (defaults to the configured API prefix)
        """
        self.app = app
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm

        prefix = (settings.api_v1_prefix if api_prefix is None else api_prefix).rstrip("/")
        self.public_endpoints = set(PUBLIC_ENDPOINTS)
        self.public_endpoints.update(prefix + path for path in PUBLIC_API_ENDPOINTS)
        self.public_read_prefixes = [prefix + path for path in PUBLIC_API_READ_PREFIXES]

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)

        # Skip authentication for public endpoints
        if request.method == "OPTIONS" or self._is_public_endpoint(request.url.path, request.method):
            await self.app(scope, receive, send)
            return

        try:
            token = self._extract_token(request)
            if not token:
                raise TokenInvalidError("No authentication token provided")

            try:
                payload = verify_jwt_token(token, self.jwt_secret, self.jwt_algorithm)
            except jwt.ExpiredSignatureError:
                raise TokenExpiredError("Token has expired")
            except jwt.InvalidTokenError as e:
                raise TokenInvalidError(f"Invalid token: {str(e)}")
        except TokenExpiredError:
            logger.info(f"Expired token: {request.method} {request.url.path}")
            await self._send_error_response(
                scope, receive, send,
                code="TOKEN_EXPIRED",
                message="Authentication token has expired. Please sign in again.",
            )
            return
        except TokenInvalidError as e:
            logger.warning(f"Rejected request: {str(e)}")
            await self._send_error_response(
                scope, receive, send,
                code="UNAUTHORIZED",
                message="Unauthorized",
            )
            return

        # Inject the decoded claims into request scope
        scope["session"] = payload
        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str, method: str = "GET") -> bool:
        """
        Check if endpoint is public (no auth required).

        Vacancy browsing is public for reads only.
        """
        if path in self.public_endpoints:
            return True
        if any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES):
            return True
        if method in ("GET", "HEAD"):
            return any(path.startswith(prefix) for prefix in self.public_read_prefixes)
        return False

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract JWT token from Authorization header.
        """
        auth_header = request.headers.get("Authorization")

        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:].strip() or None  # Remove "Bearer " prefix

        return None

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        code: str,
        message: str,
    ) -> None:
        """
        Send error response for authentication failures.
        """
        headers = dict(scope.get("headers") or [])
        request_id = headers.get(b"x-request-id")
        response = build_error_response(
            status.HTTP_401_UNAUTHORIZED,
            code,
            message,
            scope.get("path", "unknown"),
            scope.get("method", "unknown"),
            request_id=request_id.decode() if request_id else None,
        )
        await response(scope, receive, send)


def get_current_session(request: Request) -> Optional[JWTPayload]:
    """
    Get the decoded session claims from request scope, or None on public paths.
    """
    session: Any = request.scope.get("session")
    return session if isinstance(session, dict) else None
