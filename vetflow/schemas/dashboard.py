"""Dashboard schemas."""

from pydantic import BaseModel


class DashboardStatsResponse(BaseModel):
    """Clinic activity summary."""

    total_owners: int
    active_patients: int
    appointments_today: int
    upcoming_appointments: int
    appointments_by_status: dict[str, int]
    medical_records_last_30_days: int
