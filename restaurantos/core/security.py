"""
Authentication Helpers

Password hashing (werkzeug), signed bearer tokens (itsdangerous) and the
FastAPI dependencies that resolve the current user and guard endpoints
by role.

Usage:
    @router.get("/reports/sales")
    async def sales(user: User = Depends(require_roles(UserRole.MANAGER))):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from restaurantos.core.config import get_settings
from restaurantos.database import get_db
from restaurantos.models import User, UserRole

logger = logging.getLogger(__name__)

AUTH_SALT = "restaurantos-auth"
RESET_SALT = "restaurantos-password-reset"

bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


# =============================================================================
# TOKENS
# =============================================================================

def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(get_settings().secret_key, salt=salt)


def create_access_token(user: User) -> str:
    return _serializer(AUTH_SALT).dumps({"uid": user.id, "role": user.role.value})


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id stored in ``token``, or None if it is invalid or expired."""
    settings = get_settings()
    try:
        payload = _serializer(AUTH_SALT).loads(token, max_age=settings.token_max_age_seconds)
    except SignatureExpired:
        logger.info("Rejected expired session token")
        return None
    except BadSignature:
        return None
    return payload.get("uid")


def create_reset_token(user: User) -> str:
    # Embedding the current hash invalidates the token once the password changes
    return _serializer(RESET_SALT).dumps({"uid": user.id, "pw": user.password_hash[-12:]})


def decode_reset_token(token: str) -> dict:
    """
    Validate a password reset token.

    Raises:
        ValueError: If the token is expired or was tampered with
    """
    settings = get_settings()
    try:
        return _serializer(RESET_SALT).loads(token, max_age=settings.password_reset_max_age_seconds)
    except SignatureExpired:
        raise ValueError("Reset token expired")
    except BadSignature:
        raise ValueError("Invalid reset token")


# =============================================================================
# DEPENDENCIES
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the signed-in user from the ``Authorization: Bearer`` header."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(credentials.credentials)
    user = await db.get(User, user_id) if user_id else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: UserRole):
    """Build a dependency that only lets users with one of ``roles`` through."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role.value}' cannot access this resource",
            )
        return user

    return dependency
