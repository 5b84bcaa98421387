"""Database models."""

from vetflow.models.appointments import appointments
from vetflow.models.audit_logs import audit_logs
from vetflow.models.base import metadata
from vetflow.models.medical_records import medical_records
from vetflow.models.owners import owners
from vetflow.models.patients import patients
from vetflow.models.system_users import system_users

__all__ = [
    "appointments",
    "audit_logs",
    "medical_records",
    "metadata",
    "owners",
    "patients",
    "system_users",
]
