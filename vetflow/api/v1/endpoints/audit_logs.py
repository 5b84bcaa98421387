"""Audit log endpoints."""

from fastapi import APIRouter, Depends, Query

from vetflow.core.permissions import Action
from vetflow.dependencies import DatabaseSession, require_permission
from vetflow.schemas.audit_logs import AuditLogFilters, AuditLogListResponse
from vetflow.services.audit_service import AuditService

router = APIRouter()


@router.get(
    "/",
    response_model=AuditLogListResponse,
    tags=["Audit"],
    summary="List audit log entries",
    dependencies=[Depends(require_permission(Action.VIEW_AUDIT_LOGS))],
)
async def list_audit_logs(
    db: DatabaseSession,
    table_name: str | None = Query(None, max_length=50),
    record_id: int | None = Query(None, gt=0),
    actor: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
) -> AuditLogListResponse:
    """List recorded changes, newest first. Administrators only."""
    filters = AuditLogFilters(
        table_name=table_name,
        record_id=record_id,
        actor=actor,
        page=page,
        page_size=page_size,
    )
    return await AuditService(db).list_logs(filters)
