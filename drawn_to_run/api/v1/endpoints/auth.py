"""
Authentication endpoints
"""

from typing import Any
from datetime import datetime, timezone
import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import AuthenticationError, ConflictError
from drawn_to_run.core.redis import TokenBlacklist
from drawn_to_run.core.security import (
    security_manager,
    require_authenticated,
    get_token_blacklist,
    extract_bearer_token,
)
from drawn_to_run.models.user import User
from drawn_to_run.schemas.response import ApiResponse
from drawn_to_run.schemas.user import (
    UserRegister,
    UserLogin,
    UserResponse,
    AuthResponse,
    CurrentUserResponse,
    LogoutResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _auth_payload(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=security_manager.create_access_token(user),
    )


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Create an account and return it with a fresh token
    """
    result = await db.execute(
        select(func.count(User.id)).where(User.email == user_data.email)
    )
    if result.scalar():
        raise ConflictError("Email address is already registered")

    user = User(
        email=user_data.email,
        name=user_data.name,
        password_hash=security_manager.hash_password(user_data.password),
        role=user_data.role,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered user {user.id} with role {user.role.value}")
    return ApiResponse(data=_auth_payload(user))


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Exchange email and password for a token
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not security_manager.verify_password(credentials.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    return ApiResponse(data=_auth_payload(user))


@router.get("/me", response_model=ApiResponse[CurrentUserResponse])
async def get_current_user_info(
    current_user: User = Depends(require_authenticated)
) -> Any:
    """
    Get current user information
    """
    return ApiResponse(data=CurrentUserResponse(user=UserResponse.model_validate(current_user)))


@router.post("/logout", response_model=ApiResponse[LogoutResponse])
async def logout(
    request: Request,
    blacklist: TokenBlacklist = Depends(get_token_blacklist)
) -> Any:
    """
    Revoke the presented token, if it is still valid
    """
    token = extract_bearer_token(request.headers)
    payload = security_manager.decode_token(token) if token else None

    if payload and payload.jti:
        expires_at = payload.exp or datetime.now(timezone.utc)
        await blacklist.revoke(payload.jti, expires_at)

    return ApiResponse(data=LogoutResponse(
        message="Successfully logged out",
        instructions="Remove the authentication token from client storage",
    ))
