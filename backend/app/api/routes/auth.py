"""
Rubrik Review Desk — Authentication Routes
==========================================
Bearer token verification and the current user profile.
Tokens are issued by the surrounding admin application.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.envelope import success_envelope
from app.core.database import get_db
from app.core.logging import get_logger
from app.core.security import token_subject
from app.models.user import User
from app.schemas.auth import UserProfile

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger("auth")
security = HTTPBearer()


# -- Dependency: current user --
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    username = token_subject(credentials.credentials)
    if not username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        logger.info("auth_rejected_user", username=username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found or disabled",
        )
    return user


# -- Current user --
@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    role = current_user.role
    profile = UserProfile(
        id=current_user.id,
        name=current_user.name,
        username=current_user.username,
        role=role.value if hasattr(role, "value") else str(role),
        rubric_id=current_user.rubric_id,
        division_id=current_user.division_id,
        is_active=bool(current_user.is_active),
    )
    return success_envelope(profile.model_dump())
