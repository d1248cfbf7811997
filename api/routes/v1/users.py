"""
User profile endpoints.

Provides REST API for the caller's own account and the list of colleagues
in the same company.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_pagination_params
from api.schemas.common import MessageResponse, PaginatedResponse, PaginationParams
from api.schemas.users import PasswordChange, UserResponse, UserUpdate
from api.services import users as user_service
from core.middleware.authentication import Actor
from database.engine import get_db

router = APIRouter()


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get Current User",
)
async def get_current_user_profile(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_me(db, actor)
    return UserResponse.model_validate(user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update Current User",
)
async def update_current_user(
    request: UserUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_me(db, actor, request)
    return UserResponse.model_validate(user)


@router.put(
    "/me/password",
    response_model=MessageResponse,
    summary="Change Password",
)
async def change_password(
    request: PasswordChange,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(db, actor, request)
    return MessageResponse(message="Password updated")


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Current User",
)
async def delete_current_user(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_me(db, actor)


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    summary="List Company Users",
)
async def list_users(
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    users, total = await user_service.list_company_users(db, actor, pagination)
    return PaginatedResponse[UserResponse].create(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        pagination=pagination,
    )
