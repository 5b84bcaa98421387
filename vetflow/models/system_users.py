"""System user (staff account) table using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    func,
    true,
)

from vetflow.models.base import metadata

system_users = Table(
    "system_users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Credentials
    Column("username", String(50), nullable=False, unique=True, index=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    # Authorization
    Column("role", String(20), nullable=False),
    # Profile
    Column("first_name", String(100), nullable=True),
    Column("last_name", String(100), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("last_login", DateTime(timezone=True), nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "role IN ('admin', 'veterinarian', 'assistant')",
        name="system_users_role_check",
    ),
)
