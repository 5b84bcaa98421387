"""FastAPI dependencies."""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.permissions import Action, has_permission
from vetflow.core.redis_client import CacheManager, get_cache_manager
from vetflow.core.security import decode_access_token, token_user_id
from vetflow.database import get_db
from vetflow.scheduling.ports import Actor
from vetflow.services.user_service import UserService

# Security
security = HTTPBearer()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> int:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = token_user_id(payload)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id


async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Get current user from database.

    Args:
        user_id: User ID from JWT token
        db: Database session

    Returns:
        User data from database

    Raises:
        HTTPException: If user not found or inactive
    """
    user = await UserService().get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


async def get_current_actor(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> Actor:
    """Identity of the authenticated staff member for scheduling operations."""
    return Actor(
        id=current_user["id"],
        username=current_user["username"],
        role=current_user["role"],
    )


def require_permission(
    action: Action,
) -> Callable[..., Coroutine[Any, Any, dict]]:
    """
    Build a dependency that rejects users whose role lacks ``action``.

    Args:
        action: Permission required by the endpoint

    Returns:
        Dependency resolving to the current user
    """

    async def dependency(
        current_user: Annotated[dict, Depends(get_current_user)],
    ) -> dict:
        if not has_permission(current_user["role"], action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{action.value}' required",
            )
        return current_user

    return dependency


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
