"""Audit trail for changes to clinical records."""

from collections.abc import Mapping
from typing import Any

import structlog
from fastapi.encoders import jsonable_encoder
from sqlalchemy import and_, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.models.audit_logs import audit_logs
from vetflow.schemas.audit_logs import AuditLogFilters, AuditLogListResponse, AuditLogResponse

logger = structlog.get_logger()


class AuditService:
    """Writes and reads audit log entries.

    Entries are added to the caller's session without committing so they
    persist or roll back together with the change they describe.
    """

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    @staticmethod
    def snapshot(value: Mapping[str, Any] | None) -> dict[str, Any] | None:
        """JSON-safe copy of a row."""
        if value is None:
            return None
        return jsonable_encoder(dict(value))

    async def record(
        self,
        table_name: str,
        record_id: int,
        action: str,
        old_value: Mapping[str, Any] | None,
        new_value: Mapping[str, Any] | None,
        actor: str | None = None,
    ) -> None:
        """
        Add an audit entry to the current transaction.

        Args:
            table_name: Audited table
            record_id: Primary key of the changed row
            action: INSERT, UPDATE or DELETE
            old_value: Row before the change
            new_value: Row after the change
            actor: Username performing the change
        """
        await self.db.execute(
            insert(audit_logs).values(
                table_name=table_name,
                record_id=record_id,
                action=action,
                old_value=self.snapshot(old_value),
                new_value=self.snapshot(new_value),
                actor=actor or "system",
            )
        )
        logger.debug("audit_recorded", table=table_name, record_id=record_id, action=action)

    async def record_creation(
        self, table_name: str, record_id: int, new_value: Mapping[str, Any], actor: str | None
    ) -> None:
        await self.record(table_name, record_id, "INSERT", None, new_value, actor)

    async def record_update(
        self,
        table_name: str,
        record_id: int,
        old_value: Mapping[str, Any],
        new_value: Mapping[str, Any],
        actor: str | None,
    ) -> None:
        await self.record(table_name, record_id, "UPDATE", old_value, new_value, actor)

    async def list_logs(self, filters: AuditLogFilters) -> AuditLogListResponse:
        """List audit entries, newest first."""
        conditions = []
        if filters.table_name:
            conditions.append(audit_logs.c.table_name == filters.table_name)
        if filters.record_id:
            conditions.append(audit_logs.c.record_id == filters.record_id)
        if filters.actor:
            conditions.append(audit_logs.c.actor == filters.actor)

        where = and_(*conditions) if conditions else None

        count_stmt = select(func.count()).select_from(audit_logs)
        stmt = select(audit_logs)
        if where is not None:
            count_stmt = count_stmt.where(where)
            stmt = stmt.where(where)

        total = (await self.db.execute(count_stmt)).scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            stmt.order_by(audit_logs.c.created_at.desc(), audit_logs.c.id.desc())
            .limit(filters.page_size)
            .offset(offset)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return AuditLogListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[AuditLogResponse.model_validate(dict(row)) for row in rows],
        )
