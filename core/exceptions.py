"""
Domain exceptions shared by services, the access resolver and the cascade
deleter.

Each exception carries the error code used in JSON error bodies; the HTTP
status is assigned in ``core.middleware.error_handling``.
"""

from typing import Optional


class RecruitmentError(Exception):
    """Base class for all domain errors."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceNotFound(RecruitmentError):
    """Raised when an entity or a link of its ownership chain does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)


class TenantAccessDenied(RecruitmentError):
    """Raised when the ownership chain resolves to a different company."""

    code = "ACCESS_DENIED"


class ResourceConflict(RecruitmentError):
    """Raised on uniqueness violations (create or rename)."""

    code = "CONFLICT"


class StorageFailure(RecruitmentError):
    """Raised when a CV file could not be stored or removed."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class TransactionFailure(RecruitmentError):
    """Raised when a transaction could not be committed or a write failed."""

    code = "TRANSACTION_ERROR"


class AuthenticationError(RecruitmentError):
    """Raised when a request carries no valid identity."""

    code = "AUTHENTICATION_FAILED"
