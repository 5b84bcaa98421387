"""Slot arithmetic and the practitioner availability check.

Slots are half-open intervals ``[start, start + duration)``: an appointment
ending at 09:30 does not conflict with one starting at 09:30. All datetimes are
normalized to UTC; naive values are taken to already be UTC.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from vetflow.core.exceptions import NotFoundException, ValidationException
from vetflow.core.permissions import UserRole
from vetflow.scheduling.ports import AppointmentRecord, AppointmentStore
from vetflow.schemas.appointments import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    AppointmentStatus,
)

logger = structlog.get_logger()


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_start(value: datetime | str | Any) -> datetime:
    """Parse a requested start time, raising ValidationException if malformed."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        try:
            return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            raise ValidationException(f"Invalid start time: {value!r}")
    raise ValidationException("Start time is required")


def validate_duration(value: Any) -> int:
    """Ensure the duration is a whole number of minutes in the allowed range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationException("Duration must be a whole number of minutes")
    if not MIN_DURATION_MINUTES <= value <= MAX_DURATION_MINUTES:
        raise ValidationException(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
        )
    return value


def validate_id(value: Any, label: str) -> int:
    """Ensure an identifier is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationException(f"{label} must be a positive integer")
    return value


def slot_end(start: datetime, duration_minutes: int) -> datetime:
    """End of the slot starting at ``start``."""
    return as_utc(start) + timedelta(minutes=duration_minutes)


def slots_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Half-open interval overlap test."""
    return start_a < end_b and start_b < end_a


def freeing_statuses(no_show_frees_slot: bool = False) -> frozenset[str]:
    """Statuses whose appointments no longer occupy their slot."""
    statuses = {AppointmentStatus.CANCELLED.value}
    if no_show_frees_slot:
        statuses.add(AppointmentStatus.NO_SHOW.value)
    return frozenset(statuses)


def find_conflicts(
    existing: Iterable[AppointmentRecord],
    start: datetime,
    duration_minutes: int,
    exclude_appointment_id: int | None = None,
    ignored_statuses: Iterable[str] = (AppointmentStatus.CANCELLED.value,),
) -> list[AppointmentRecord]:
    """
    Return the appointments whose slot overlaps the requested one.

    Args:
        existing: Appointments of a single practitioner
        start: Requested start
        duration_minutes: Requested duration
        exclude_appointment_id: Appointment being rescheduled, never a conflict with itself
        ignored_statuses: Statuses that do not occupy a slot

    Returns:
        Overlapping appointments ordered by start time
    """
    requested_start = as_utc(start)
    requested_end = slot_end(requested_start, duration_minutes)
    ignored = {_status_value(status) for status in ignored_statuses}

    conflicts = []
    for appointment in existing:
        if exclude_appointment_id is not None and appointment["id"] == exclude_appointment_id:
            continue
        if _status_value(appointment["status"]) in ignored:
            continue
        existing_start = as_utc(appointment["scheduled_at"])
        existing_end = slot_end(existing_start, appointment["duration_minutes"])
        if slots_overlap(existing_start, existing_end, requested_start, requested_end):
            conflicts.append(appointment)

    return sorted(conflicts, key=lambda a: (as_utc(a["scheduled_at"]), a["id"]))


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, AppointmentStatus) else str(status)


class AvailabilityChecker:
    """Decides whether a practitioner is free for a requested slot."""

    def __init__(self, store: AppointmentStore, no_show_frees_slot: bool = False):
        """Initialize with the persistence boundary and the no-show policy."""
        self.store = store
        self.ignored_statuses = freeing_statuses(no_show_frees_slot)

    async def get_conflicts(
        self,
        veterinarian_id: int,
        requested_start: datetime | str,
        duration_minutes: int,
        exclude_appointment_id: int | None = None,
    ) -> list[AppointmentRecord]:
        """
        List the appointments overlapping the requested slot.

        Args:
            veterinarian_id: Practitioner to check
            requested_start: Start of the requested slot (datetime or ISO-8601 string)
            duration_minutes: Length of the requested slot
            exclude_appointment_id: Appointment to ignore when rescheduling

        Returns:
            Conflicting appointments ordered by ``scheduled_at``

        Raises:
            ValidationException: If any input is malformed
            NotFoundException: If the practitioner is unknown or inactive
        """
        veterinarian_id = validate_id(veterinarian_id, "Veterinarian id")
        start = parse_start(requested_start)
        duration = validate_duration(duration_minutes)
        if exclude_appointment_id is not None:
            validate_id(exclude_appointment_id, "Excluded appointment id")

        practitioner = await self.store.get_practitioner(veterinarian_id)
        if not is_assignable_practitioner(practitioner):
            raise NotFoundException(f"Veterinarian {veterinarian_id} not found")

        end = slot_end(start, duration)
        # Nothing starting earlier than the longest allowed slot can reach into this one
        existing = await self.store.list_appointments_for_practitioner(
            veterinarian_id,
            status_exclude=self.ignored_statuses,
            starts_before=end,
            starts_after=start - timedelta(minutes=MAX_DURATION_MINUTES),
        )

        conflicts = find_conflicts(
            existing,
            start,
            duration,
            exclude_appointment_id=exclude_appointment_id,
            ignored_statuses=self.ignored_statuses,
        )
        logger.debug(
            "availability_checked",
            veterinarian_id=veterinarian_id,
            scheduled_at=start.isoformat(),
            duration_minutes=duration,
            conflicts=[c["id"] for c in conflicts],
        )
        return conflicts

    async def is_available(
        self,
        veterinarian_id: int,
        requested_start: datetime | str,
        duration_minutes: int,
        exclude_appointment_id: int | None = None,
    ) -> bool:
        """Return True if the requested slot does not overlap any occupying appointment."""
        conflicts = await self.get_conflicts(
            veterinarian_id,
            requested_start,
            duration_minutes,
            exclude_appointment_id=exclude_appointment_id,
        )
        return not conflicts


def is_assignable_practitioner(practitioner: Any) -> bool:
    """A practitioner can hold appointments if it is an active veterinarian account."""
    return bool(
        practitioner
        and practitioner["is_active"]
        and practitioner["role"] == UserRole.VETERINARIAN.value
    )
