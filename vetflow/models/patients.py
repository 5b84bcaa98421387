"""Patients (animals) table model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    func,
    true,
)

from vetflow.models.base import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, index=True),
    Column("species", String(20), nullable=False),
    Column("breed", String(100), nullable=True),
    Column("birth_date", Date, nullable=True),
    Column("weight", Numeric(6, 2), nullable=True),
    Column(
        "owner_id",
        Integer,
        ForeignKey("owners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "species IN ('dog', 'cat', 'bird', 'rabbit', 'reptile', 'other')",
        name="patients_species_check",
    ),
    CheckConstraint("weight IS NULL OR weight > 0", name="patients_weight_check"),
)
