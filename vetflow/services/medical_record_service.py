"""Medical record service for business logic."""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.exceptions import NotFoundException, ValidationException
from vetflow.core.permissions import UserRole
from vetflow.models.medical_records import medical_records
from vetflow.models.patients import patients
from vetflow.models.system_users import system_users
from vetflow.scheduling.availability import as_utc, is_assignable_practitioner
from vetflow.scheduling.lifecycle import append_note
from vetflow.scheduling.ports import Actor
from vetflow.schemas.medical_records import (
    MedicalRecordCreate,
    MedicalRecordListResponse,
    MedicalRecordResponse,
    MedicalRecordUpdate,
)
from vetflow.services.audit_service import AuditService

logger = structlog.get_logger()

MEDICAL_RECORDS_TABLE = "medical_records"


class MedicalRecordService:
    """Service for managing medical records."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    async def _get_row(self, record_id: int) -> dict:
        stmt = select(medical_records).where(medical_records.c.id == record_id)
        row = (await self.db.execute(stmt)).mappings().first()
        if not row:
            raise NotFoundException("Medical record not found")
        return dict(row)

    async def _resolve_veterinarian(self, requested_id: int | None, actor: Actor) -> int:
        if requested_id is None:
            if actor.role != UserRole.VETERINARIAN.value or actor.id is None:
                raise ValidationException("veterinarian_id is required")
            requested_id = actor.id

        stmt = select(system_users.c.role, system_users.c.is_active).where(
            system_users.c.id == requested_id
        )
        practitioner = (await self.db.execute(stmt)).mappings().first()
        if not is_assignable_practitioner(practitioner):
            raise ValidationException(f"Veterinarian {requested_id} not found or inactive")
        return requested_id

    async def create_record(self, data: MedicalRecordCreate, actor: Actor) -> MedicalRecordResponse:
        """
        Create a medical record for a patient visit.

        Raises:
            ValidationException: If the patient or veterinarian does not exist
        """
        patient_found = (
            await self.db.execute(select(patients.c.id).where(patients.c.id == data.patient_id))
        ).first()
        if not patient_found:
            raise ValidationException(f"Patient {data.patient_id} not found")

        veterinarian_id = await self._resolve_veterinarian(data.veterinarian_id, actor)

        stmt = (
            insert(medical_records)
            .values(
                patient_id=data.patient_id,
                veterinarian_id=veterinarian_id,
                visit_date=as_utc(data.visit_date),
                diagnosis=data.diagnosis,
                treatment=data.treatment,
                medications=data.medications,
                notes=append_note(None, data.notes),
            )
            .returning(medical_records)
        )
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_creation(MEDICAL_RECORDS_TABLE, row["id"], row, actor.username)
        await self.db.commit()

        logger.info(
            "medical_record_created",
            record_id=row["id"],
            patient_id=row["patient_id"],
            actor=actor.username,
        )
        return MedicalRecordResponse.model_validate(row)

    async def get_record(self, record_id: int) -> MedicalRecordResponse:
        """Get medical record by ID."""
        return MedicalRecordResponse.model_validate(await self._get_row(record_id))

    async def list_records(
        self,
        patient_id: int | None = None,
        veterinarian_id: int | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> MedicalRecordListResponse:
        """List medical records, most recent visit first."""
        conditions = []
        if patient_id:
            conditions.append(medical_records.c.patient_id == patient_id)
        if veterinarian_id:
            conditions.append(medical_records.c.veterinarian_id == veterinarian_id)

        count_stmt = select(func.count()).select_from(medical_records).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(medical_records)
            .where(*conditions)
            .order_by(medical_records.c.visit_date.desc(), medical_records.c.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return MedicalRecordListResponse(
            total=total,
            page=page,
            page_size=page_size,
            items=[MedicalRecordResponse.model_validate(dict(row)) for row in rows],
        )

    async def update_record(
        self,
        record_id: int,
        data: MedicalRecordUpdate,
        actor: Actor,
    ) -> MedicalRecordResponse:
        """Update clinical fields; notes are appended to the existing text."""
        before = await self._get_row(record_id)

        changes = data.model_dump(exclude_unset=True)
        update_values: dict[str, Any] = {
            field: value
            for field, value in changes.items()
            if field != "notes" and value is not None
        }
        if "diagnosis" in update_values:
            diagnosis = update_values["diagnosis"].strip()
            if not diagnosis:
                raise ValidationException("Diagnosis is required")
            update_values["diagnosis"] = diagnosis

        merged_notes = append_note(before["notes"], changes.get("notes"))
        if merged_notes != before["notes"]:
            update_values["notes"] = merged_notes

        if not update_values:
            return MedicalRecordResponse.model_validate(before)

        update_values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(medical_records)
            .where(medical_records.c.id == record_id)
            .values(**update_values)
            .returning(medical_records)
        )
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_update(MEDICAL_RECORDS_TABLE, record_id, before, row, actor.username)
        await self.db.commit()

        return MedicalRecordResponse.model_validate(row)
