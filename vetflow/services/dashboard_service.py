"""Dashboard statistics."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.models.appointments import appointments
from vetflow.models.medical_records import medical_records
from vetflow.models.owners import owners
from vetflow.models.patients import patients
from vetflow.scheduling.availability import as_utc
from vetflow.schemas.appointments import AppointmentStatus
from vetflow.schemas.dashboard import DashboardStatsResponse


class DashboardService:
    """Aggregates counts for the clinic dashboard."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _count(self, table, *conditions) -> int:
        stmt = select(func.count()).select_from(table).where(*conditions)
        return (await self.db.execute(stmt)).scalar() or 0

    async def get_stats(self, now: datetime | None = None) -> DashboardStatsResponse:
        """
        Compute dashboard statistics.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            Counts of owners, patients, appointments and recent records
        """
        now = as_utc(now) if now else datetime.now(UTC)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        day_end = day_start + timedelta(days=1)
        live = appointments.c.deleted_at.is_(None)

        status_rows = await self.db.execute(
            select(appointments.c.status, func.count())
            .where(live)
            .group_by(appointments.c.status)
        )
        by_status = {status.value: 0 for status in AppointmentStatus}
        by_status.update({status: count for status, count in status_rows.all()})

        return DashboardStatsResponse(
            total_owners=await self._count(owners),
            active_patients=await self._count(patients, patients.c.is_active.is_(True)),
            appointments_today=await self._count(
                appointments,
                and_(
                    live,
                    appointments.c.scheduled_at >= day_start,
                    appointments.c.scheduled_at < day_end,
                ),
            ),
            upcoming_appointments=await self._count(
                appointments,
                and_(
                    live,
                    appointments.c.scheduled_at >= now,
                    appointments.c.status.in_(
                        [AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value]
                    ),
                ),
            ),
            appointments_by_status=by_status,
            medical_records_last_30_days=await self._count(
                medical_records,
                medical_records.c.visit_date >= now - timedelta(days=30),
            ),
        )
