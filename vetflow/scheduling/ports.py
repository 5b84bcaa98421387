"""Boundaries consumed by the scheduler core.

The scheduler never talks to the database or the auth layer directly. It is
handed an ``AppointmentStore`` for persistence and an ``Authorizer`` for role
checks; records cross the boundary as plain mappings.
"""

from collections.abc import Iterable, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

AppointmentRecord = Mapping[str, Any]


@dataclass(frozen=True)
class Actor:
    """Authenticated staff member performing a scheduling operation."""

    id: int | None
    username: str
    role: str


class AppointmentStore(Protocol):
    """Persistence boundary for appointments."""

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Unit of work: commit on success, roll back on any error."""
        ...

    async def get_appointment(self, appointment_id: int) -> AppointmentRecord | None: ...

    async def lock_appointment(self, appointment_id: int) -> AppointmentRecord | None:
        """Load a live appointment and hold its row lock until the transaction ends."""
        ...

    async def list_appointments_for_practitioner(
        self,
        veterinarian_id: int,
        status_exclude: Iterable[str],
        starts_before: datetime | None = None,
        starts_after: datetime | None = None,
    ) -> list[AppointmentRecord]: ...

    async def create_appointment(
        self, data: Mapping[str, Any], actor: Actor
    ) -> AppointmentRecord: ...

    async def update_appointment(
        self,
        appointment_id: int,
        patch: Mapping[str, Any],
        actor: Actor,
        expected_status: str | None = None,
    ) -> AppointmentRecord | None:
        """Apply ``patch``. Returns None when ``expected_status`` no longer matches."""
        ...

    async def get_practitioner(self, veterinarian_id: int) -> Mapping[str, Any] | None: ...

    async def get_patient(self, patient_id: int) -> Mapping[str, Any] | None: ...

    async def lock_practitioner(self, veterinarian_id: int) -> None:
        """Serialize writers on one practitioner's schedule until the transaction ends."""
        ...


class Authorizer(Protocol):
    """Authorization boundary."""

    def can_perform(self, actor_role: str, action: str) -> bool: ...
