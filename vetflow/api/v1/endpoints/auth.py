"""Authentication endpoints."""

from fastapi import APIRouter, status

from vetflow.dependencies import CacheManagerDep, DatabaseSession
from vetflow.schemas.auth import LoginResponse, TokenRequest
from vetflow.services.auth_service import AuthService
from vetflow.services.user_service import UserService

router = APIRouter()


@router.post(
    "/token",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Log in with username and password",
)
async def login(
    request: TokenRequest,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
) -> LoginResponse:
    """
    Exchange staff credentials for a bearer access token.

    Args:
        request: Username and password
        cache_manager: Cache manager
        db: Database session

    Returns:
        Access token and the authenticated user

    Raises:
        HTTPException: 401 if the credentials are invalid or the account is inactive
    """
    auth_service = AuthService(UserService(cache_manager))
    return await auth_service.login(db, request.username, request.password)
