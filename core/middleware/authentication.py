"""
Authentication middleware for verifying user identity.

This middleware:
1. Validates bearer JWT tokens from Authorization headers
2. Injects the acting user (user id + company id) into the request scope
3. Rejects protected requests without a valid token with 401
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse

from core.exceptions import AuthenticationError
from core.security import JWTPayload, verify_jwt_token

logger = logging.getLogger(__name__)

# Public endpoints that don't require authentication
PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/companies",
    "/docs",
    "/redoc",
    "/openapi.json",
]


@dataclass(frozen=True)
class Actor:
    """Authenticated principal. Only ``company_id`` is used for scoping."""

    user_id: int
    company_id: Optional[int]


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""
    pass


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is invalid."""
    pass


class AuthenticationMiddleware:
    """
    Authentication middleware that validates bearer tokens.

    Tokens are self-contained; no database access happens here. Lookups of
    the user row are left to the handlers that need it.
    """

    def __init__(
        self,
        app: Callable,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
    ):
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            jwt_secret: Secret key for JWT verification
            jwt_algorithm: JWT signing algorithm
        """
        self.app = app
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)

        # Skip authentication for public endpoints and CORS preflight
        if request.method == "OPTIONS" or self._is_public_endpoint(request.url.path):
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

            actor = self._actor_from_payload(payload)
        except TokenExpiredError:
            await self._send_error_response(
                scope,
                receive,
                send,
                code="TOKEN_EXPIRED",
                message="Authentication token has expired. Please login again.",
            )
            return
        except TokenInvalidError as e:
            logger.warning(f"Invalid token: {str(e)}")
            await self._send_error_response(
                scope,
                receive,
                send,
                code="TOKEN_INVALID",
                message="Invalid authentication token.",
            )
            return

        scope["actor"] = actor
        scope["jwt_payload"] = payload
        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        """
        Check if endpoint is public (no auth required).

        Args:
            path: Request path

        Returns:
            True if endpoint is public
        """
        if path.rstrip("/") in PUBLIC_ENDPOINTS or path in PUBLIC_ENDPOINTS:
            return True

        public_prefixes = ["/docs", "/redoc"]
        return any(path.startswith(prefix) for prefix in public_prefixes)

    def _extract_token(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization")

        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:]  # Remove "Bearer " prefix

        return None

    def _actor_from_payload(self, payload: JWTPayload) -> Actor:
        user_id = payload.get("user_id")
        if not user_id:
            raise TokenInvalidError("Token missing user_id")

        company_id = payload.get("company_id")
        if company_id is not None and not isinstance(company_id, int):
            raise TokenInvalidError("Token carries malformed company_id")

        return Actor(user_id=user_id, company_id=company_id)

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        code: str,
        message: str,
    ) -> None:
        """
        Send 401 response for authentication failures.

        Args:
            scope: ASGI scope dictionary
            receive: ASGI receive function
            send: ASGI send function
            code: Error code
            message: Error message
        """
        error_response = {
            "error": {
                "code": code,
                "message": message,
                "path": scope.get("path"),
                "method": scope.get("method"),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }

        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_response,
            headers={"WWW-Authenticate": "Bearer"},
        )

        await response(scope, receive, send)
