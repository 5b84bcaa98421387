"""Medical record endpoints."""

from fastapi import APIRouter, Depends, Query, status

from vetflow.core.permissions import Action
from vetflow.dependencies import CurrentActor, DatabaseSession, require_permission
from vetflow.schemas.medical_records import (
    MedicalRecordCreate,
    MedicalRecordListResponse,
    MedicalRecordResponse,
    MedicalRecordUpdate,
)
from vetflow.services.medical_record_service import MedicalRecordService

router = APIRouter()


@router.post(
    "/",
    response_model=MedicalRecordResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Medical Records"],
    summary="Create medical record",
    dependencies=[Depends(require_permission(Action.CREATE_MEDICAL_RECORDS))],
)
async def create_medical_record(
    data: MedicalRecordCreate,
    actor: CurrentActor,
    db: DatabaseSession,
) -> MedicalRecordResponse:
    """
    Record a visit for a patient.

    Args:
        data: Visit details
        actor: Authenticated staff member
        db: Database session

    Returns:
        Created record

    Raises:
        HTTPException: 422 if the patient does not exist or no veterinarian can be attributed
    """
    return await MedicalRecordService(db).create_record(data, actor)


@router.get(
    "/",
    response_model=MedicalRecordListResponse,
    tags=["Medical Records"],
    summary="List medical records",
    dependencies=[Depends(require_permission(Action.VIEW_RECORDS))],
)
async def list_medical_records(
    db: DatabaseSession,
    patient_id: int | None = Query(None, gt=0),
    veterinarian_id: int | None = Query(None, gt=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> MedicalRecordListResponse:
    """List medical records, most recent visit first."""
    return await MedicalRecordService(db).list_records(
        patient_id=patient_id,
        veterinarian_id=veterinarian_id,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{record_id}",
    response_model=MedicalRecordResponse,
    tags=["Medical Records"],
    summary="Get medical record by ID",
    dependencies=[Depends(require_permission(Action.VIEW_RECORDS))],
)
async def get_medical_record(record_id: int, db: DatabaseSession) -> MedicalRecordResponse:
    """Get a specific medical record by ID."""
    return await MedicalRecordService(db).get_record(record_id)


@router.patch(
    "/{record_id}",
    response_model=MedicalRecordResponse,
    tags=["Medical Records"],
    summary="Update medical record",
    dependencies=[Depends(require_permission(Action.EDIT_MEDICAL_RECORDS))],
)
async def update_medical_record(
    record_id: int,
    data: MedicalRecordUpdate,
    actor: CurrentActor,
    db: DatabaseSession,
) -> MedicalRecordResponse:
    """Update clinical fields. New notes are appended to the existing ones."""
    return await MedicalRecordService(db).update_record(record_id, data, actor)
