"""SQLAlchemy implementation of the appointment persistence boundary."""

from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.models.appointments import appointments
from vetflow.models.patients import patients
from vetflow.models.system_users import system_users
from vetflow.scheduling.ports import Actor
from vetflow.services.audit_service import AuditService

APPOINTMENTS_TABLE = "appointments"


class SQLAppointmentStore:
    """Appointment store over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db
        self.audit = AuditService(db)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit the session on success, roll it back on any error."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    @staticmethod
    def _live_appointment(appointment_id: int):
        return select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.deleted_at.is_(None),
            )
        )

    async def get_appointment(self, appointment_id: int) -> dict | None:
        row = (await self.db.execute(self._live_appointment(appointment_id))).mappings().first()
        return dict(row) if row else None

    async def lock_appointment(self, appointment_id: int) -> dict | None:
        stmt = self._live_appointment(appointment_id).with_for_update()
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def list_appointments_for_practitioner(
        self,
        veterinarian_id: int,
        status_exclude: Iterable[str],
        starts_before: datetime | None = None,
        starts_after: datetime | None = None,
    ) -> list[dict]:
        conditions = [
            appointments.c.veterinarian_id == veterinarian_id,
            appointments.c.deleted_at.is_(None),
        ]
        excluded = list(status_exclude)
        if excluded:
            conditions.append(appointments.c.status.not_in(excluded))
        if starts_before is not None:
            conditions.append(appointments.c.scheduled_at < starts_before)
        if starts_after is not None:
            conditions.append(appointments.c.scheduled_at > starts_after)

        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.scheduled_at)
        rows = (await self.db.execute(stmt)).mappings().all()
        return [dict(row) for row in rows]

    async def create_appointment(self, data: Mapping[str, Any], actor: Actor) -> dict:
        stmt = insert(appointments).values(**data).returning(appointments)
        row = (await self.db.execute(stmt)).mappings().one()
        created = dict(row)
        await self.audit.record_creation(APPOINTMENTS_TABLE, created["id"], created, actor.username)
        return created

    async def update_appointment(
        self,
        appointment_id: int,
        patch: Mapping[str, Any],
        actor: Actor,
        expected_status: str | None = None,
    ) -> dict | None:
        before = await self.get_appointment(appointment_id)

        conditions = [appointments.c.id == appointment_id]
        if expected_status is not None:
            conditions.append(appointments.c.status == expected_status)

        stmt = (
            update(appointments)
            .where(and_(*conditions))
            .values(**patch, updated_at=datetime.now(UTC))
            .returning(appointments)
        )
        row = (await self.db.execute(stmt)).mappings().first()
        if row is None:
            return None
        updated = dict(row)
        await self.audit.record_update(
            APPOINTMENTS_TABLE, appointment_id, before or {}, updated, actor.username
        )
        return updated

    async def get_practitioner(self, veterinarian_id: int) -> dict | None:
        stmt = select(
            system_users.c.id,
            system_users.c.username,
            system_users.c.role,
            system_users.c.is_active,
        ).where(system_users.c.id == veterinarian_id)
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def get_patient(self, patient_id: int) -> dict | None:
        stmt = select(patients.c.id, patients.c.name, patients.c.is_active).where(
            patients.c.id == patient_id
        )
        row = (await self.db.execute(stmt)).mappings().first()
        return dict(row) if row else None

    async def lock_practitioner(self, veterinarian_id: int) -> None:
        # Row lock on PostgreSQL; SQLite omits FOR UPDATE and serializes writers itself
        stmt = (
            select(system_users.c.id)
            .where(system_users.c.id == veterinarian_id)
            .with_for_update()
        )
        await self.db.execute(stmt)
