"""Appointment state machine and the scheduling write operations."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog

from vetflow.core.exceptions import (
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    SchedulingConflictException,
    ValidationException,
)
from vetflow.core.permissions import Action
from vetflow.scheduling.availability import (
    AvailabilityChecker,
    as_utc,
    is_assignable_practitioner,
    parse_start,
    slot_end,
    validate_duration,
    validate_id,
)
from vetflow.scheduling.ports import Actor, AppointmentRecord, AppointmentStore, Authorizer
from vetflow.schemas.appointments import (
    DEFAULT_DURATION_MINUTES,
    AppointmentPriority,
    AppointmentStatus,
    AppointmentType,
)

logger = structlog.get_logger()

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.IN_PROGRESS,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)
RESCHEDULABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})
CANCELLABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


def can_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> bool:
    """Whether ``current -> target`` is in the transition table. Same-state moves are not."""
    return AppointmentStatus(target) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def is_terminal(status: AppointmentStatus | str) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES


def can_reschedule(appointment: AppointmentRecord) -> bool:
    return AppointmentStatus(appointment["status"]) in RESCHEDULABLE_STATUSES


def can_cancel(appointment: AppointmentRecord) -> bool:
    return AppointmentStatus(appointment["status"]) in CANCELLABLE_STATUSES


def end_time(appointment: AppointmentRecord) -> datetime:
    return slot_end(appointment["scheduled_at"], appointment["duration_minutes"])


def is_overdue(appointment: AppointmentRecord, now: datetime | None = None) -> bool:
    """A still-scheduled appointment whose start time has passed."""
    now = as_utc(now) if now else datetime.now(UTC)
    return (
        AppointmentStatus(appointment["status"]) == AppointmentStatus.SCHEDULED
        and as_utc(appointment["scheduled_at"]) < now
    )


def with_derived_fields(appointment: AppointmentRecord, now: datetime | None = None) -> dict:
    """Copy of the record with the computed display fields added."""
    return {
        **appointment,
        "end_time": end_time(appointment),
        "is_overdue": is_overdue(appointment, now),
        "can_reschedule": can_reschedule(appointment),
        "can_cancel": can_cancel(appointment),
    }


@dataclass(frozen=True)
class ScheduleAppointmentCommand:
    """Request to book a new appointment."""

    patient_id: int
    veterinarian_id: int
    scheduled_at: datetime | str
    type: AppointmentType | str
    reason: str
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    priority: AppointmentPriority | str = AppointmentPriority.MEDIUM
    notes: str | None = None


def append_note(notes: str | None, extra: str | None) -> str | None:
    """Append a line to free-text notes, ignoring blank input."""
    extra = extra.strip() if extra else None
    if not extra:
        return notes
    if not notes or not notes.strip():
        return extra
    return f"{notes}\n{extra}"


def _coerce_enum(enum_cls: type, value: Any, label: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationException(f"Invalid {label}: {value!r}")


class AppointmentLifecycleManager:
    """Creates appointments and moves them through the status state machine.

    Every write runs inside ``store.transaction()``: the availability read, the
    row write and its audit entry either all persist or none do.
    """

    def __init__(
        self,
        store: AppointmentStore,
        authorizer: Authorizer,
        no_show_frees_slot: bool = False,
    ):
        """Initialize with persistence and authorization boundaries."""
        self.store = store
        self.authorizer = authorizer
        self.availability = AvailabilityChecker(store, no_show_frees_slot=no_show_frees_slot)

    def _authorize(self, actor: Actor, action: Action) -> None:
        if not self.authorizer.can_perform(actor.role, action.value):
            logger.warning(
                "appointment_action_denied",
                actor=actor.username,
                role=actor.role,
                action=action.value,
            )
            raise ForbiddenException(f"Role '{actor.role}' may not {action.value.replace('_', ' ')}")

    async def _load(self, appointment_id: int) -> AppointmentRecord:
        # Row lock held until the surrounding transaction ends
        appointment_id = validate_id(appointment_id, "Appointment id")
        appointment = await self.store.lock_appointment(appointment_id)
        if appointment is None:
            raise NotFoundException(f"Appointment {appointment_id} not found")
        return appointment

    async def _ensure_available(
        self,
        veterinarian_id: int,
        start: datetime,
        duration: int,
        exclude_appointment_id: int | None = None,
    ) -> None:
        await self.store.lock_practitioner(veterinarian_id)
        conflicts = await self.availability.get_conflicts(
            veterinarian_id,
            start,
            duration,
            exclude_appointment_id=exclude_appointment_id,
        )
        if conflicts:
            conflicting_ids = [c["id"] for c in conflicts]
            logger.info(
                "appointment_conflict",
                veterinarian_id=veterinarian_id,
                scheduled_at=start.isoformat(),
                duration_minutes=duration,
                conflicting_ids=conflicting_ids,
            )
            raise SchedulingConflictException(conflicting_ids)

    async def schedule(self, command: ScheduleAppointmentCommand, actor: Actor) -> AppointmentRecord:
        """
        Book a new appointment in the ``scheduled`` state.

        Args:
            command: Appointment details
            actor: Staff member booking the appointment

        Returns:
            The created appointment

        Raises:
            ForbiddenException: If the actor may not create appointments
            ValidationException: If input is malformed or references are invalid
            SchedulingConflictException: If the slot is taken
        """
        self._authorize(actor, Action.CREATE_APPOINTMENTS)

        patient_id = validate_id(command.patient_id, "Patient id")
        veterinarian_id = validate_id(command.veterinarian_id, "Veterinarian id")
        start = parse_start(command.scheduled_at)
        duration = validate_duration(command.duration_minutes)
        appointment_type = _coerce_enum(AppointmentType, command.type, "appointment type")
        priority = _coerce_enum(AppointmentPriority, command.priority, "priority")
        reason = (command.reason or "").strip()
        if not reason:
            raise ValidationException("Appointment reason is required")

        patient = await self.store.get_patient(patient_id)
        if patient is None:
            raise ValidationException(f"Patient {patient_id} not found")
        if not patient["is_active"]:
            raise ValidationException("Cannot schedule appointments for inactive patients")

        practitioner = await self.store.get_practitioner(veterinarian_id)
        if not is_assignable_practitioner(practitioner):
            raise ValidationException(f"Veterinarian {veterinarian_id} not found or inactive")

        async with self.store.transaction():
            await self._ensure_available(veterinarian_id, start, duration)
            appointment = await self.store.create_appointment(
                {
                    "patient_id": patient_id,
                    "veterinarian_id": veterinarian_id,
                    "scheduled_at": start,
                    "duration_minutes": duration,
                    "type": appointment_type.value,
                    "priority": priority.value,
                    "reason": reason,
                    "notes": append_note(None, command.notes),
                    "status": AppointmentStatus.SCHEDULED.value,
                    "created_by": actor.id,
                },
                actor,
            )

        logger.info(
            "appointment_scheduled",
            appointment_id=appointment["id"],
            veterinarian_id=veterinarian_id,
            patient_id=patient_id,
            scheduled_at=start.isoformat(),
            duration_minutes=duration,
            actor=actor.username,
        )
        return appointment

    async def reschedule(
        self,
        appointment_id: int,
        new_start: datetime | str,
        new_duration: int | None = None,
        *,
        actor: Actor,
    ) -> AppointmentRecord:
        """
        Move an appointment to a new slot with the same practitioner.

        Only scheduled or confirmed appointments can move. The appointment never
        conflicts with its own current slot.
        """
        self._authorize(actor, Action.RESCHEDULE_APPOINTMENTS)
        start = parse_start(new_start)

        async with self.store.transaction():
            appointment = await self._load(appointment_id)
            duration = validate_duration(
                appointment["duration_minutes"] if new_duration is None else new_duration
            )
            if not can_reschedule(appointment):
                raise InvalidStateTransitionException(
                    appointment["status"],
                    "rescheduled",
                    message="Only scheduled or confirmed appointments can be rescheduled",
                )
            await self._ensure_available(
                appointment["veterinarian_id"],
                start,
                duration,
                exclude_appointment_id=appointment["id"],
            )
            updated = await self.store.update_appointment(
                appointment["id"],
                {"scheduled_at": start, "duration_minutes": duration},
                actor,
            )

        logger.info(
            "appointment_rescheduled",
            appointment_id=appointment["id"],
            previous_start=as_utc(appointment["scheduled_at"]).isoformat(),
            scheduled_at=start.isoformat(),
            duration_minutes=duration,
            actor=actor.username,
        )
        return updated

    async def change_status(
        self,
        appointment_id: int,
        target_status: AppointmentStatus | str,
        *,
        actor: Actor,
        notes: str | None = None,
    ) -> AppointmentRecord:
        """
        Move an appointment along the transition table.

        Raises:
            InvalidStateTransitionException: If the table does not allow the move
        """
        self._authorize(actor, Action.CHANGE_APPOINTMENT_STATUS)
        return await self._transition(appointment_id, target_status, actor=actor, notes=notes)

    async def cancel(
        self,
        appointment_id: int,
        *,
        actor: Actor,
        reason: str | None = None,
    ) -> AppointmentRecord:
        """Cancel a scheduled or confirmed appointment, appending the reason to its notes."""
        self._authorize(actor, Action.CANCEL_APPOINTMENTS)
        return await self._transition(
            appointment_id, AppointmentStatus.CANCELLED, actor=actor, notes=reason
        )

    async def _transition(
        self,
        appointment_id: int,
        target_status: AppointmentStatus | str,
        *,
        actor: Actor,
        notes: str | None = None,
    ) -> AppointmentRecord:
        target = _coerce_enum(AppointmentStatus, target_status, "status")

        async with self.store.transaction():
            appointment = await self._load(appointment_id)
            current = AppointmentStatus(appointment["status"])
            if not can_transition(current, target):
                raise InvalidStateTransitionException(current.value, target.value)

            patch: dict[str, Any] = {"status": target.value}
            if target == AppointmentStatus.CANCELLED:
                patch["cancelled_at"] = datetime.now(UTC)
            merged_notes = append_note(appointment.get("notes"), notes)
            if merged_notes != appointment.get("notes"):
                patch["notes"] = merged_notes

            updated = await self.store.update_appointment(
                appointment["id"], patch, actor, expected_status=current.value
            )
            if updated is None:
                raise InvalidStateTransitionException(
                    current.value,
                    target.value,
                    message="Appointment status changed while this update was in progress",
                )

        logger.info(
            "appointment_status_changed",
            appointment_id=appointment["id"],
            from_status=current.value,
            to_status=target.value,
            actor=actor.username,
        )
        return updated

    async def update_details(
        self,
        appointment_id: int,
        changes: Mapping[str, Any],
        *,
        actor: Actor,
    ) -> AppointmentRecord:
        """Update descriptive fields (type, priority, reason, notes)."""
        self._authorize(actor, Action.EDIT_APPOINTMENTS)
        allowed = {"type", "priority", "reason", "notes"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationException(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = {}
        if changes.get("type") is not None:
            patch["type"] = _coerce_enum(AppointmentType, changes["type"], "appointment type").value
        if changes.get("priority") is not None:
            patch["priority"] = _coerce_enum(AppointmentPriority, changes["priority"], "priority").value
        if changes.get("reason") is not None:
            reason = changes["reason"].strip()
            if not reason:
                raise ValidationException("Appointment reason is required")
            patch["reason"] = reason
        if "notes" in changes:
            patch["notes"] = changes["notes"]

        async with self.store.transaction():
            appointment = await self._load(appointment_id)
            if not patch:
                return appointment
            return await self.store.update_appointment(appointment["id"], patch, actor)
