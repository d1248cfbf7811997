"""
Security utilities: password hashing and access tokens.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs carrying the
user id and the company (tenant) id the user belongs to.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, TypedDict

import bcrypt
import jwt

logger = logging.getLogger(__name__)


class JWTPayload(TypedDict, total=False):
    """Claims carried by an access token."""

    user_id: int
    company_id: Optional[int]
    type: str
    exp: int
    iat: int
    jti: str


def hash_password(password: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.

    Args:
        password: Plain text password

    Returns:
        bcrypt hash as a string
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain text password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Password verification against malformed hash")
        return False


def create_access_token(
    user_id: int,
    company_id: Optional[int],
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token.

    Args:
        user_id: Authenticated user id
        company_id: Company (tenant) of the user, None if unassigned
        secret_key: Signing secret
        algorithm: JWT signing algorithm
        expires_delta: Token lifetime (default 24 hours)

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=24))
    payload: dict[str, Any] = {
        "user_id": user_id,
        "company_id": company_id,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def verify_jwt_token(token: str, secret_key: str, algorithm: str = "HS256") -> JWTPayload:
    """
    Decode and validate an access token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is malformed or not an access token
    """
    payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload
