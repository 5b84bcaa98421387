"""Medical records table model using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Table, Text, func

from vetflow.models.base import metadata

medical_records = Table(
    "medical_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, ForeignKey("patients.id"), nullable=False, index=True),
    Column("veterinarian_id", Integer, ForeignKey("system_users.id"), nullable=False),
    # Clinical content
    Column("visit_date", DateTime(timezone=True), nullable=False),
    Column("diagnosis", Text, nullable=False),
    Column("treatment", Text, nullable=True),
    Column("medications", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
