"""Dashboard endpoints."""

from fastapi import APIRouter, Depends

from vetflow.core.permissions import Action
from vetflow.dependencies import DatabaseSession, require_permission
from vetflow.schemas.dashboard import DashboardStatsResponse
from vetflow.services.dashboard_service import DashboardService

router = APIRouter()


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    tags=["Dashboard"],
    summary="Clinic overview counters",
    dependencies=[Depends(require_permission(Action.VIEW_RECORDS))],
)
async def get_dashboard_stats(db: DatabaseSession) -> DashboardStatsResponse:
    """Counts of owners, patients, appointments and recent medical records."""
    return await DashboardService(db).get_stats()
