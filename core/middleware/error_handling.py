"""
Error handling middleware with security-compliant error sanitization.
Prevents sensitive data leakage while providing useful error information.

Domain errors are mapped to HTTP status codes:

    ResourceNotFound      404 NOT_FOUND
    TenantAccessDenied    403 ACCESS_DENIED
    ResourceConflict      409 CONFLICT
    AuthenticationError   401 AUTHENTICATION_FAILED
    StorageFailure        502 STORAGE_ERROR
    TransactionFailure    500 TRANSACTION_ERROR
"""

import logging
import re
import traceback
from typing import Any, Callable

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import (
    AuthenticationError,
    RecruitmentError,
    ResourceConflict,
    ResourceNotFound,
    StorageFailure,
    TenantAccessDenied,
    TransactionFailure,
)

logger = logging.getLogger(__name__)

HTTP_422 = 422

DOMAIN_ERROR_STATUS: dict[type[RecruitmentError], int] = {
    ResourceNotFound: status.HTTP_404_NOT_FOUND,
    TenantAccessDenied: status.HTTP_403_FORBIDDEN,
    ResourceConflict: status.HTTP_409_CONFLICT,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    StorageFailure: status.HTTP_502_BAD_GATEWAY,
    TransactionFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'\bBearer\s+[A-Za-z0-9\-_\.]+', re.IGNORECASE),
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (only in dev)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def domain_error_status(exc: RecruitmentError) -> int:
    for exc_type, status_code in DOMAIN_ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(code: str, message: str, path: str, method: str, details: Any = None) -> dict:
    body = {
        "error": {
            "code": code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    return body


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a user-friendly structure.

    Input values are echoed back only when they are plain scalars that do not
    look sensitive.
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        if "input" in error:
            input_value = error["input"]
            if isinstance(input_value, (str, int, float, bool)):
                input_str = str(input_value)
                if not any(pattern.search(input_str) for pattern in SENSITIVE_PATTERNS):
                    error_dict["input"] = input_value
        errors.append(error_dict)
    return errors


def _log_domain_error(exc: RecruitmentError, method: str, path: str, status_code: int) -> None:
    message = sanitize_error_message(exc.message)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__}: {method} {path} - {message}")
    else:
        logger.warning(f"{type(exc).__name__}: {method} {path} - {message}")


class ErrorHandlingMiddleware:
    """
    Last-resort error handling middleware.

    Catches anything the route-level exception handlers did not turn into a
    response, so clients always receive the JSON error body and never a
    stack trace (unless debug is on).
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
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        """
        Handle different types of exceptions and return appropriate responses.

        Args:
            exc: The exception to handle
            scope: ASGI scope for context

        Returns:
            JSONResponse with error details
        """
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"
        details = None

        if isinstance(exc, RecruitmentError):
            status_code = domain_error_status(exc)
            error_code = exc.code
            message = sanitize_error_message(exc.message)
            _log_domain_error(exc, request_method, request_path, status_code)

        elif isinstance(exc, StarletteHTTPException):
            status_code = exc.status_code
            error_code = "HTTP_EXCEPTION"
            message = sanitize_error_message(str(exc.detail))
            logger.warning(
                f"HTTP exception: {request_method} {request_path} - "
                f"Status: {status_code}, Message: {message}"
            )

        elif isinstance(exc, RequestValidationError):
            status_code = HTTP_422
            error_code = "VALIDATION_ERROR"
            message = "Request validation failed"
            details = format_validation_errors(exc)
            logger.warning(
                f"Validation error: {request_method} {request_path} - "
                f"Errors: {details}"
            )

        elif isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            error_code = "INTEGRITY_ERROR"
            message = "Database integrity constraint violated"
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"Database integrity error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        elif isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            error_code = "DATABASE_ERROR"
            message = "Database service temporarily unavailable"
            logger.error(
                f"Database operational error: {request_method} {request_path}",
                exc_info=True
            )

        elif isinstance(exc, SQLAlchemyError):
            error_code = "DATABASE_ERROR"
            message = "A database error occurred"
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"SQLAlchemy error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        else:
            if self.debug:
                details = get_safe_error_details(exc, include_details=True)
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True
            )

        error_response = error_body(error_code, message, request_path, request_method, details)

        # Add request ID if available
        if "headers" in scope:
            headers = dict(scope["headers"])
            request_id = headers.get(b"x-request-id")
            if request_id:
                error_response["error"]["request_id"] = request_id.decode()

        return JSONResponse(
            status_code=status_code,
            content=error_response,
        )


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(RecruitmentError)
    async def domain_exception_handler(request: Request, exc: RecruitmentError):
        """Handle domain errors raised by services."""
        status_code = domain_error_status(exc)
        _log_domain_error(exc, request.method, request.url.path, status_code)
        return JSONResponse(
            status_code=status_code,
            content=error_body(
                exc.code,
                sanitize_error_message(exc.message),
                str(request.url.path),
                request.method,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                "HTTP_EXCEPTION",
                sanitize_error_message(str(exc.detail)),
                str(request.url.path),
                request.method,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        return JSONResponse(
            status_code=HTTP_422,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                str(request.url.path),
                request.method,
                format_validation_errors(exc),
            ),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        """Handle unique/foreign key violations that slipped past service checks."""
        logger.error(f"Database integrity error: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body(
                "INTEGRITY_ERROR",
                "Database integrity constraint violated",
                str(request.url.path),
                request.method,
            ),
        )

    @app.exception_handler(OperationalError)
    async def operational_exception_handler(request: Request, exc: OperationalError):
        """Handle database connectivity errors."""
        logger.error(
            f"Database operational error: {request.method} {request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body(
                "DATABASE_ERROR",
                "Database service temporarily unavailable",
                str(request.url.path),
                request.method,
            ),
        )
