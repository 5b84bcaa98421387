"""Audit log table model using SQLAlchemy Core."""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Table, func

from vetflow.models.base import metadata

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(50), nullable=False),
    Column("record_id", Integer, nullable=False),
    Column("action", String(10), nullable=False),
    # Row snapshots
    Column("old_value", JSON, nullable=True),
    Column("new_value", JSON, nullable=True),
    Column("actor", String(50), nullable=False, server_default="system"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Index("ix_audit_logs_table_record", "table_name", "record_id"),
)
