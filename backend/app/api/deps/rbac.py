from __future__ import annotations

from collections.abc import Iterable

from fastapi import Depends, HTTPException, status

from app.api.routes.auth import get_current_user
from app.domain.articles.policy import Actor
from app.models.user import User, UserRole


def enforce_roles(
    user: User,
    allowed: Iterable[UserRole],
    *,
    message: str = "Not authorized for this action",
) -> None:
    allowed_set = set(allowed)
    if user.role not in allowed_set:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def require_roles(*allowed: UserRole):
    async def _dependency(current_user: User = Depends(get_current_user)) -> User:
        enforce_roles(current_user, allowed)
        return current_user

    return _dependency


async def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    return Actor.from_user(current_user)


REVIEWER_ROLES = (UserRole.super_admin, UserRole.editor_rubric, UserRole.admin_rubric)


async def get_reviewer_actor(
    current_user: User = Depends(require_roles(*REVIEWER_ROLES)),
) -> Actor:
    return Actor.from_user(current_user)
