"""Pet owner endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from vetflow.core.permissions import Action
from vetflow.dependencies import DatabaseSession, require_permission
from vetflow.schemas.owners import OwnerCreate, OwnerListResponse, OwnerResponse, OwnerUpdate
from vetflow.services.owner_service import OwnerService

router = APIRouter()

OwnerManager = Annotated[dict, Depends(require_permission(Action.MANAGE_OWNERS))]
can_view = Depends(require_permission(Action.VIEW_RECORDS))


@router.post(
    "/",
    response_model=OwnerResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Owners"],
    summary="Register owner",
)
async def create_owner(
    data: OwnerCreate,
    current_user: OwnerManager,
    db: DatabaseSession,
) -> OwnerResponse:
    """
    Register a new pet owner.

    Args:
        data: Owner contact details
        current_user: Staff member allowed to manage owners
        db: Database session

    Returns:
        Created owner
    """
    return await OwnerService(db).create_owner(data, current_user["username"])


@router.get(
    "/",
    response_model=OwnerListResponse,
    tags=["Owners"],
    summary="List owners",
    dependencies=[can_view],
)
async def list_owners(
    db: DatabaseSession,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> OwnerListResponse:
    """List owners, optionally searching by name, email or phone."""
    return await OwnerService(db).list_owners(search=search, page=page, page_size=page_size)


@router.get(
    "/{owner_id}",
    response_model=OwnerResponse,
    tags=["Owners"],
    summary="Get owner by ID",
    dependencies=[can_view],
)
async def get_owner(owner_id: int, db: DatabaseSession) -> OwnerResponse:
    """Get a specific owner by ID."""
    return await OwnerService(db).get_owner(owner_id)


@router.patch(
    "/{owner_id}",
    response_model=OwnerResponse,
    tags=["Owners"],
    summary="Update owner",
)
async def update_owner(
    owner_id: int,
    data: OwnerUpdate,
    current_user: OwnerManager,
    db: DatabaseSession,
) -> OwnerResponse:
    """Update owner contact details."""
    return await OwnerService(db).update_owner(owner_id, data, current_user["username"])
