"""Staff account endpoints."""

from fastapi import APIRouter, Depends, status

from vetflow.core.exceptions import NotFoundException
from vetflow.core.permissions import Action
from vetflow.dependencies import CacheManagerDep, CurrentUser, DatabaseSession, require_permission
from vetflow.schemas.users import UserCreate, UserResponse, UserUpdate
from vetflow.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

can_manage_users = Depends(require_permission(Action.MANAGE_USERS))


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: CurrentUser):
    """Get the authenticated staff member's account."""
    return UserResponse.model_validate(current_user)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_manage_users],
)
async def create_user(
    user_data: UserCreate,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
):
    """Create a staff account. Administrators only."""
    user = await UserService(cache_manager).create_user(db, user_data)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[can_manage_users])
async def get_user(user_id: int, db: DatabaseSession):
    """Get a staff account by ID. Administrators only."""
    user = await UserService().get_user_by_id(db, user_id)
    if not user:
        raise NotFoundException("User not found")
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse, dependencies=[can_manage_users])
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
):
    """Update a staff account, including role and active flag. Administrators only."""
    user = await UserService(cache_manager).update_user(db, user_id, user_data)
    return UserResponse.model_validate(user)
