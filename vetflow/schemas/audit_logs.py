"""Audit log schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditLogResponse(BaseModel):
    """Schema for a single audit entry."""

    id: int
    table_name: str
    record_id: int
    action: str
    old_value: dict[str, Any] | None = None
    new_value: dict[str, Any] | None = None
    actor: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    """Schema for paginated audit log list response."""

    total: int
    page: int
    page_size: int
    items: list[AuditLogResponse]


class AuditLogFilters(BaseModel):
    """Schema for audit log filtering."""

    table_name: str | None = None
    record_id: int | None = None
    actor: str | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)
