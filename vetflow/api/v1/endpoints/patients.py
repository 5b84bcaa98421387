"""Patient endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from vetflow.core.permissions import Action
from vetflow.dependencies import DatabaseSession, require_permission
from vetflow.schemas.patients import (
    PatientCreate,
    PatientFilters,
    PatientListResponse,
    PatientResponse,
    PatientStatusUpdate,
    PatientUpdate,
    Species,
)
from vetflow.services.patient_service import PatientService

router = APIRouter()

PatientManager = Annotated[dict, Depends(require_permission(Action.MANAGE_PATIENTS))]
can_view = Depends(require_permission(Action.VIEW_RECORDS))


@router.post(
    "/",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Patients"],
    summary="Register patient",
)
async def register_patient(
    data: PatientCreate,
    current_user: PatientManager,
    db: DatabaseSession,
) -> PatientResponse:
    """
    Register a new patient for an existing owner.

    Raises:
        HTTPException: 422 if the owner does not exist
    """
    return await PatientService(db).register_patient(data, current_user["username"])


@router.get(
    "/",
    response_model=PatientListResponse,
    tags=["Patients"],
    summary="List patients",
    dependencies=[can_view],
)
async def list_patients(
    db: DatabaseSession,
    owner_id: int | None = Query(None, gt=0),
    species: Species | None = Query(None),
    is_active: bool | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PatientListResponse:
    """List patients with filtering."""
    filters = PatientFilters(
        owner_id=owner_id,
        species=species,
        is_active=is_active,
        search=search,
        page=page,
        page_size=page_size,
    )
    return await PatientService(db).list_patients(filters)


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    tags=["Patients"],
    summary="Get patient by ID",
    dependencies=[can_view],
)
async def get_patient(patient_id: int, db: DatabaseSession) -> PatientResponse:
    """Get a specific patient by ID."""
    return await PatientService(db).get_patient(patient_id)


@router.patch(
    "/{patient_id}",
    response_model=PatientResponse,
    tags=["Patients"],
    summary="Update patient",
)
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    current_user: PatientManager,
    db: DatabaseSession,
) -> PatientResponse:
    """Update a patient profile."""
    return await PatientService(db).update_patient(patient_id, data, current_user["username"])


@router.patch(
    "/{patient_id}/status",
    response_model=PatientResponse,
    tags=["Patients"],
    summary="Activate or deactivate patient",
)
async def update_patient_status(
    patient_id: int,
    data: PatientStatusUpdate,
    current_user: PatientManager,
    db: DatabaseSession,
) -> PatientResponse:
    """Inactive patients keep their history but cannot be booked."""
    return await PatientService(db).set_active(patient_id, data.is_active, current_user["username"])
