"""Appointment endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from vetflow.core.permissions import Action
from vetflow.dependencies import CurrentActor, DatabaseSession, require_permission
from vetflow.schemas.appointments import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentType,
    AppointmentUpdate,
    AvailabilityResponse,
)
from vetflow.services.appointment_service import AppointmentService

router = APIRouter()

can_view = Depends(require_permission(Action.VIEW_RECORDS))


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Schedule new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    actor: CurrentActor,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Schedule an appointment after checking the veterinarian is free.

    Args:
        data: Appointment creation data
        actor: Authenticated staff member
        db: Database session

    Returns:
        Created appointment
    """
    service = AppointmentService(db)
    return await service.create_appointment(data, actor)


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Check veterinarian availability",
    dependencies=[can_view],
)
async def check_availability(
    db: DatabaseSession,
    veterinarian_id: int = Query(..., gt=0),
    scheduled_at: datetime = Query(...),
    duration_minutes: int = Query(30, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES),
    exclude_appointment_id: int | None = Query(None, gt=0),
) -> AvailabilityResponse:
    """
    Check whether a veterinarian is free for a slot and list conflicting appointments.

    Args:
        db: Database session
        veterinarian_id: Veterinarian to check
        scheduled_at: Requested start
        duration_minutes: Requested length
        exclude_appointment_id: Appointment being rescheduled

    Returns:
        Availability flag and conflicting appointments
    """
    service = AppointmentService(db)
    return await service.check_availability(
        veterinarian_id,
        scheduled_at,
        duration_minutes,
        exclude_appointment_id=exclude_appointment_id,
    )


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
    dependencies=[can_view],
)
async def list_appointments(
    db: DatabaseSession,
    patient_id: int | None = Query(None, gt=0),
    veterinarian_id: int | None = Query(None, gt=0),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    type_filter: AppointmentType | None = Query(None, alias="type"),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments with filtering.

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        patient_id=patient_id,
        veterinarian_id=veterinarian_id,
        status=status_filter,
        type=type_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    service = AppointmentService(db)
    return await service.list_appointments(filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
    dependencies=[can_view],
)
async def get_appointment(
    appointment_id: int,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        HTTPException: If appointment not found
    """
    service = AppointmentService(db)
    return await service.get_appointment(appointment_id)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment details",
)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    actor: CurrentActor,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Update type, priority, reason or notes of an appointment."""
    service = AppointmentService(db)
    return await service.update_appointment(appointment_id, data, actor)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: int,
    data: AppointmentReschedule,
    actor: CurrentActor,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Move an appointment to a new slot.

    Raises:
        HTTPException: 409 if the slot is taken or the appointment can no longer move
    """
    service = AppointmentService(db)
    return await service.reschedule_appointment(appointment_id, data, actor)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    actor: CurrentActor,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Update appointment status (e.g., confirm, start, complete).

    Raises:
        HTTPException: 409 if the transition is not allowed
    """
    service = AppointmentService(db)
    return await service.update_appointment_status(appointment_id, data, actor)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: int,
    actor: CurrentActor,
    db: DatabaseSession,
    data: AppointmentCancel | None = None,
) -> AppointmentResponse:
    """Cancel a scheduled or confirmed appointment."""
    service = AppointmentService(db)
    return await service.cancel_appointment(
        appointment_id,
        actor,
        reason=data.reason if data else None,
    )


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: int,
    actor: CurrentActor,
    db: DatabaseSession,
    hard_delete: bool = Query(False),
) -> None:
    """
    Delete an appointment (soft delete by default). Administrators only.

    Args:
        appointment_id: Appointment ID
        actor: Authenticated staff member
        db: Database session
        hard_delete: If true, permanently delete the record
    """
    service = AppointmentService(db)
    await service.delete_appointment(appointment_id, actor, hard_delete)
