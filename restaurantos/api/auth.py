"""
Authentication Endpoints

Sign up, sign in, sign out, the current profile and the password reset
flow. Tokens are signed with itsdangerous and sent as ``Bearer`` headers.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.config import get_settings
from restaurantos.core.security import (
    create_access_token,
    create_reset_token,
    decode_reset_token,
    get_current_user,
    hash_password,
    verify_password,
)
from restaurantos.database import get_db
from restaurantos.models import Message, User
from restaurantos.schemas import (
    ErrorResponse,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserResponse,
)
from restaurantos.services.notifications import BaseNotificationService, get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


async def _user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def sign_up(data: SignUpRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Create an account and sign it in."""
    if await _user_by_email(db, data.email) is not None:
        raise HTTPException(status_code=400, detail="An account with this email already exists")

    user = User(
        email=data.email,
        password_hash=hash_password(data.password),
        name=data.name,
        role=data.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"👤 New {user.role.value} account: {user.email}")
    return TokenResponse(access_token=create_access_token(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=TokenResponse, responses={401: {"model": ErrorResponse}})
async def sign_in(data: SignInRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    user = await _user_by_email(db, data.email)
    if user is None or not verify_password(user.password_hash, data.password):
        logger.info(f"Failed sign in for {data.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return TokenResponse(access_token=create_access_token(user), user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def sign_out(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Sign out. The stored assistant conversation is discarded."""
    await db.execute(delete(Message).where(Message.user_id == user.id))
    await db.commit()
    logger.info(f"Signed out {user.email}")
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> MessageResponse:
    """
    Email a password reset link.

    The response is the same whether or not the address is registered.
    """
    user = await _user_by_email(db, data.email)
    if user is not None:
        token = create_reset_token(user)
        reset_url = f"{get_settings().app_base_url}/reset-password?token={token}"
        result = await notifier.send_password_reset(user.email, user.name, reset_url)
        if not result.success:
            logger.error(f"Password reset email to {user.email} failed: {result.error_message}")
            raise HTTPException(status_code=502, detail="Could not send the reset email. Please try again.")
        logger.info(f"🔑 Password reset link sent to {user.email}")

    return MessageResponse(message="If the address is registered, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse, responses={400: {"model": ErrorResponse}})
async def reset_password(data: ResetPasswordRequest, db: AsyncSession = Depends(get_db)) -> MessageResponse:
    try:
        payload = decode_reset_token(data.token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = await db.get(User, payload.get("uid"))
    # A token only works until the password it was issued for changes
    if user is None or user.password_hash[-12:] != payload.get("pw"):
        raise HTTPException(status_code=400, detail="Invalid reset token")

    user.password_hash = hash_password(data.new_password)
    await db.commit()
    logger.info(f"🔑 Password reset for {user.email}")
    return MessageResponse(message="Password updated")
