"""Appointment service for business logic."""

from datetime import UTC, datetime

import structlog
from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.config import settings
from vetflow.core.exceptions import ForbiddenException, NotFoundException
from vetflow.core.permissions import Action, RolePermissionAuthorizer
from vetflow.models.appointments import appointments
from vetflow.scheduling.availability import as_utc, parse_start
from vetflow.scheduling.lifecycle import (
    AppointmentLifecycleManager,
    ScheduleAppointmentCommand,
    end_time,
    with_derived_fields,
)
from vetflow.scheduling.ports import Actor, Authorizer
from vetflow.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    AvailabilityResponse,
    ConflictSummary,
)
from vetflow.services.appointment_store import APPOINTMENTS_TABLE, SQLAppointmentStore

logger = structlog.get_logger()


TIMESTAMP_FIELDS = ("scheduled_at", "created_at", "updated_at", "cancelled_at")


def to_response(row: dict) -> AppointmentResponse:
    """Build the API representation of an appointment row, with timestamps in UTC."""
    normalized = {
        **row,
        **{field: as_utc(row[field]) for field in TIMESTAMP_FIELDS if row.get(field) is not None},
    }
    return AppointmentResponse.model_validate(with_derived_fields(normalized))


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession, authorizer: Authorizer | None = None):
        """Initialize service with database session."""
        self.db = db
        self.store = SQLAppointmentStore(db)
        self.authorizer = authorizer or RolePermissionAuthorizer()
        self.manager = AppointmentLifecycleManager(
            self.store,
            self.authorizer,
            no_show_frees_slot=settings.no_show_frees_slot,
        )

    async def create_appointment(self, data: AppointmentCreate, actor: Actor) -> AppointmentResponse:
        """
        Schedule a new appointment.

        Args:
            data: Appointment creation data
            actor: Staff member booking the appointment

        Returns:
            Created appointment
        """
        command = ScheduleAppointmentCommand(
            patient_id=data.patient_id,
            veterinarian_id=data.veterinarian_id,
            scheduled_at=data.scheduled_at,
            duration_minutes=data.duration_minutes,
            type=data.type,
            priority=data.priority,
            reason=data.reason,
            notes=data.notes,
        )
        row = await self.manager.schedule(command, actor)
        return to_response(row)

    async def get_appointment(self, appointment_id: int) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        row = await self.store.get_appointment(appointment_id)
        if row is None:
            raise NotFoundException("Appointment not found")
        return to_response(row)

    async def list_appointments(self, filters: AppointmentFilters) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            filters: Filter and pagination parameters

        Returns:
            Paginated list of appointments, newest first
        """
        conditions = [appointments.c.deleted_at.is_(None)]

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.veterinarian_id:
            conditions.append(appointments.c.veterinarian_id == filters.veterinarian_id)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.type:
            conditions.append(appointments.c.type == filters.type.value)

        if filters.from_date:
            conditions.append(appointments.c.scheduled_at >= as_utc(filters.from_date))

        if filters.to_date:
            conditions.append(appointments.c.scheduled_at <= as_utc(filters.to_date))

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_at.desc())
            .limit(filters.page_size)
            .offset(offset)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_response(dict(row)) for row in rows],
        )

    async def update_appointment(
        self,
        appointment_id: int,
        data: AppointmentUpdate,
        actor: Actor,
    ) -> AppointmentResponse:
        """Update descriptive fields of an appointment."""
        row = await self.manager.update_details(
            appointment_id,
            data.model_dump(exclude_unset=True),
            actor=actor,
        )
        return to_response(row)

    async def reschedule_appointment(
        self,
        appointment_id: int,
        data: AppointmentReschedule,
        actor: Actor,
    ) -> AppointmentResponse:
        """Move an appointment to a new slot."""
        row = await self.manager.reschedule(
            appointment_id,
            data.scheduled_at,
            data.duration_minutes,
            actor=actor,
        )
        return to_response(row)

    async def update_appointment_status(
        self,
        appointment_id: int,
        data: AppointmentStatusUpdate,
        actor: Actor,
    ) -> AppointmentResponse:
        """Change appointment status along the allowed transitions."""
        row = await self.manager.change_status(
            appointment_id,
            data.status,
            actor=actor,
            notes=data.notes,
        )
        return to_response(row)

    async def cancel_appointment(
        self,
        appointment_id: int,
        actor: Actor,
        reason: str | None = None,
    ) -> AppointmentResponse:
        """Cancel an appointment."""
        row = await self.manager.cancel(appointment_id, actor=actor, reason=reason)
        return to_response(row)

    async def check_availability(
        self,
        veterinarian_id: int,
        scheduled_at: datetime | str,
        duration_minutes: int,
        exclude_appointment_id: int | None = None,
    ) -> AvailabilityResponse:
        """Report whether a slot is free and which appointments occupy it."""
        conflicts = await self.manager.availability.get_conflicts(
            veterinarian_id,
            scheduled_at,
            duration_minutes,
            exclude_appointment_id=exclude_appointment_id,
        )
        return AvailabilityResponse(
            veterinarian_id=veterinarian_id,
            scheduled_at=parse_start(scheduled_at),
            duration_minutes=duration_minutes,
            available=not conflicts,
            conflicts=[
                ConflictSummary(
                    id=c["id"],
                    patient_id=c["patient_id"],
                    scheduled_at=as_utc(c["scheduled_at"]),
                    end_time=end_time(c),
                    status=c["status"],
                )
                for c in conflicts
            ],
        )

    async def delete_appointment(
        self,
        appointment_id: int,
        actor: Actor,
        hard_delete: bool = False,
    ) -> None:
        """
        Delete an appointment (soft delete by default).

        Args:
            appointment_id: Appointment ID
            actor: Staff member requesting deletion
            hard_delete: If True, permanently delete the record

        Raises:
            ForbiddenException: If the actor may not delete records
            NotFoundException: If appointment not found
        """
        if not self.authorizer.can_perform(actor.role, Action.DELETE_RECORDS.value):
            raise ForbiddenException("Only administrators can delete appointments")

        async with self.store.transaction():
            before = await self.store.lock_appointment(appointment_id)
            if before is None:
                raise NotFoundException("Appointment not found")

            if hard_delete:
                stmt = delete(appointments).where(appointments.c.id == appointment_id)
            else:
                now = datetime.now(UTC)
                stmt = (
                    update(appointments)  # type: ignore[assignment]
                    .where(appointments.c.id == appointment_id)
                    .values(deleted_at=now, updated_at=now)
                )

            await self.db.execute(stmt)
            await self.store.audit.record(
                APPOINTMENTS_TABLE, appointment_id, "DELETE", before, None, actor.username
            )

        logger.info(
            "appointment_deleted",
            appointment_id=appointment_id,
            hard_delete=hard_delete,
            actor=actor.username,
        )
