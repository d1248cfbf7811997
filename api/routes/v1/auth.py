"""
Authentication endpoints.

Registration of recruiter accounts and password login issuing bearer tokens.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from api.schemas.users import UserResponse
from api.services import auth as auth_service
from database.engine import get_db

router = APIRouter()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    description="Create an account in an existing company.",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.register_user(db, request)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login",
    description="Exchange email and password for a bearer token.",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.login(db, request)
