"""
Authentication endpoints.

Provides:
- Email/password registration and login
- The signed-in user and an admin check for the front end
"""

import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.users import (
    AdminCheckResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from api.services import users as user_service
from core.config import settings
from core.security import build_session_claims, create_access_token
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an applicant account",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Create an applicant account.

    - **name**: Full name
    - **email**: Must not be registered yet
    - **password**: At least 8 characters
    """
    user = await user_service.create_user(db, request.name, request.email, request.password)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign in",
    description="Verify credentials and issue a session token",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await user_service.authenticate(db, request.email, request.password)

    expires = timedelta(minutes=settings.access_token_expire_minutes)
    token = create_access_token(
        build_session_claims(user.id, user.email, user.name, user.role),
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=expires,
    )
    logger.info(f"User {user.id} signed in")
    return TokenResponse(
        access_token=token,
        expires_in=int(expires.total_seconds()),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("/check-admin", response_model=AdminCheckResponse, summary="Is the current user an admin")
async def check_admin(current_user: User = Depends(get_current_user)) -> AdminCheckResponse:
    return AdminCheckResponse(is_admin=current_user.is_admin)
