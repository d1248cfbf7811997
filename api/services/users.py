"""User profile service functions."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.users import PasswordChange, UserUpdate
from api.services.common import flush_or_conflict, paginate
from core.exceptions import AuthenticationError, ResourceConflict, ResourceNotFound
from core.middleware.authentication import Actor
from core.middleware.authorization import require_tenant
from core.security import hash_password, verify_password
from database.engine import atomic
from database.models.users import User

logger = logging.getLogger(__name__)


async def _get_user(db: AsyncSession, user_id: int, lock: bool = False) -> User:
    query = select(User).where(User.id == user_id)
    if lock:
        query = query.with_for_update()
    user = await db.scalar(query)
    if user is None:
        raise ResourceNotFound("User", user_id)
    return user


async def get_me(db: AsyncSession, actor: Actor) -> User:
    return await _get_user(db, actor.user_id)


async def update_me(db: AsyncSession, actor: Actor, data: UserUpdate) -> User:
    """
    Update name, email or phone of the acting user.

    Raises:
        ResourceConflict: If the new email is used by another account
    """
    async with atomic(db):
        user = await _get_user(db, actor.user_id, lock=True)
        updates = data.model_dump(exclude_unset=True)

        email = updates.get("email")
        if email and email != user.email:
            taken = await db.scalar(
                select(User.id).where(User.email == email, User.id != user.id)
            )
            if taken is not None:
                raise ResourceConflict("Email already in use")

        for field, value in updates.items():
            if value is None and field != "phone":
                continue
            setattr(user, field, value)
        await flush_or_conflict(db, "Email already in use")
    return user


async def change_password(db: AsyncSession, actor: Actor, data: PasswordChange) -> None:
    """
    Replace the password after verifying the current one.

    Raises:
        AuthenticationError: If the current password is wrong
    """
    async with atomic(db):
        user = await _get_user(db, actor.user_id, lock=True)
        if not verify_password(data.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = hash_password(data.new_password)
    logger.info(f"User {user.id} changed password")


async def delete_me(db: AsyncSession, actor: Actor) -> None:
    async with atomic(db):
        user = await _get_user(db, actor.user_id, lock=True)
        await db.delete(user)
    logger.info(f"Deleted user {actor.user_id}")


async def list_company_users(db: AsyncSession, actor: Actor, pagination: PaginationParams):
    """Users sharing the actor's company."""
    company_id = require_tenant(actor.company_id)
    query = select(User).where(User.company_id == company_id).order_by(User.id)
    return await paginate(db, query, pagination)
