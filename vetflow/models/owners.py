"""Owners table model using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, Integer, String, Table, Text, func

from vetflow.models.base import metadata

owners = Table(
    "owners",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, index=True),
    # Contact
    Column("phone", String(20), nullable=False),
    Column("email", String(255), nullable=True),
    Column("address", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
