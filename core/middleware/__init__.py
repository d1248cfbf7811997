"""
Core middleware package.

This package provides:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Redis token bucket rate limiting
- Bearer JWT authentication
- Tenant-scoped authorization over the company ownership chain
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

from core.middleware.rate_limiting import (
    RateLimitMiddleware,
    TokenBucket,
)

from core.middleware.authentication import (
    Actor,
    AuthenticationMiddleware,
)

from core.middleware.authorization import (
    AccessDecision,
    check_access,
    ensure_access,
    resolve_tenant,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    # Rate limiting
    "RateLimitMiddleware",
    "TokenBucket",
    # Authentication
    "Actor",
    "AuthenticationMiddleware",
    # Authorization
    "AccessDecision",
    "check_access",
    "ensure_access",
    "resolve_tenant",
]
