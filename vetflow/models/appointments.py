"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)

from vetflow.models.base import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # References (immutable after creation)
    Column("patient_id", Integer, ForeignKey("patients.id"), nullable=False, index=True),
    Column("veterinarian_id", Integer, ForeignKey("system_users.id"), nullable=False),
    # Slot
    Column("scheduled_at", DateTime(timezone=True), nullable=False),
    Column("duration_minutes", Integer, nullable=False, server_default="30"),
    # Appointment details
    Column("type", String(20), nullable=False),
    Column("priority", String(20), nullable=False, server_default="medium"),
    Column("reason", Text, nullable=False),
    Column("notes", Text, nullable=True),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    # Audit fields
    Column("created_by", Integer, ForeignKey("system_users.id"), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Soft delete (healthcare compliance)
    Column("deleted_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "duration_minutes BETWEEN 15 AND 240",
        name="appointments_duration_check",
    ),
    CheckConstraint(
        "type IN ('consultation', 'vaccination', 'surgery', 'grooming', 'emergency', "
        "'checkup', 'other')",
        name="appointments_type_check",
    ),
    CheckConstraint(
        "priority IN ('low', 'medium', 'high', 'emergency')",
        name="appointments_priority_check",
    ),
    Index("ix_appointments_veterinarian_scheduled", "veterinarian_id", "scheduled_at"),
)
