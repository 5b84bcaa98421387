"""Veterinarian lookup endpoints."""

from fastapi import APIRouter, Depends

from vetflow.core.exceptions import NotFoundException
from vetflow.core.permissions import Action
from vetflow.dependencies import CacheManagerDep, DatabaseSession, require_permission
from vetflow.schemas.users import VeterinarianResponse
from vetflow.services.user_service import UserService

router = APIRouter(
    prefix="/veterinarians",
    tags=["Veterinarians"],
    dependencies=[Depends(require_permission(Action.VIEW_RECORDS))],
)


@router.get("", response_model=list[VeterinarianResponse])
async def list_veterinarians(cache_manager: CacheManagerDep, db: DatabaseSession):
    """List active veterinarians that appointments can be booked with."""
    return await UserService(cache_manager).list_veterinarians(db)


@router.get("/{veterinarian_id}", response_model=VeterinarianResponse)
async def get_veterinarian(
    veterinarian_id: int,
    cache_manager: CacheManagerDep,
    db: DatabaseSession,
):
    """
    Get a veterinarian by ID.

    Raises:
        HTTPException: 404 if no veterinarian has this ID
    """
    veterinarian = await UserService(cache_manager).get_veterinarian(db, veterinarian_id)
    if not veterinarian:
        raise NotFoundException("Veterinarian not found")
    return veterinarian
