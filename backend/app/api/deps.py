"""
Request-scoped dependencies: the authenticated user and capability checks.

Admin routes declare the permission they need with require_permission();
the check runs against the user loaded for that request.
"""

from typing import Callable

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import get_current_user_id
from app.db.session import get_db
from app.models.user import Permission, User
from app.core.logging import get_logger

logger = get_logger(__name__)


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_permission(permission: Permission) -> Callable:
    async def checker(user: User = Depends(get_current_user)) -> User:
        if not user.has_permission(permission):
            logger.warning("permission_denied", user_id=user.id, permission=permission.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission.value}",
            )
        return user

    return checker
