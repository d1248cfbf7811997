"""Registration and login service functions."""

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from api.services.common import flush_or_conflict
from core.config import settings
from core.exceptions import AuthenticationError, ResourceConflict
from core.middleware.authorization import get_company
from core.security import create_access_token, hash_password, verify_password
from database.engine import atomic
from database.models.users import User

logger = logging.getLogger(__name__)


async def register_user(db: AsyncSession, data: RegisterRequest) -> User:
    """
    Create a user account in an existing company.

    Raises:
        ResourceNotFound: If the company does not exist
        ResourceConflict: If the email is already registered
    """
    async with atomic(db):
        await get_company(db, data.company_id)
        existing = await db.scalar(select(User.id).where(User.email == data.email))
        if existing is not None:
            raise ResourceConflict("Email already registered")

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            company_id=data.company_id,
        )
        db.add(user)
        await flush_or_conflict(db, "Email already registered")

    logger.info(f"Registered user {user.id} in company {user.company_id}")
    return user


async def login(db: AsyncSession, data: LoginRequest) -> TokenResponse:
    """
    Exchange email and password for a bearer token.

    Raises:
        AuthenticationError: If the email is unknown or the password is wrong
    """
    user = await db.scalar(select(User).where(User.email == data.email))
    if user is None or not verify_password(data.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise AuthenticationError("Invalid email or password")

    expires = timedelta(minutes=settings.access_token_expire_minutes)
    token = create_access_token(
        user_id=user.id,
        company_id=user.company_id,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=expires,
    )
    logger.info(f"User {user.id} logged in")
    return TokenResponse(
        access_token=token,
        expires_in=int(expires.total_seconds()),
        user_id=user.id,
        company_id=user.company_id,
    )
