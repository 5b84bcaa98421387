"""Patient service for business logic."""

from datetime import UTC, date, datetime
from typing import Any

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.exceptions import NotFoundException, ValidationException
from vetflow.models.owners import owners
from vetflow.models.patients import patients
from vetflow.schemas.patients import (
    PatientCreate,
    PatientFilters,
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)
from vetflow.services.audit_service import AuditService

logger = structlog.get_logger()

PATIENTS_TABLE = "patients"


def age_in_years(birth_date: date | None, today: date | None = None) -> int | None:
    """Completed years since birth."""
    if birth_date is None:
        return None
    today = today or date.today()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(years, 0)


def to_response(row: dict) -> PatientResponse:
    return PatientResponse.model_validate({**row, "age_years": age_in_years(row["birth_date"])})


class PatientService:
    """Service for managing patients."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    async def _get_row(self, patient_id: int) -> dict:
        stmt = select(patients).where(patients.c.id == patient_id)
        row = (await self.db.execute(stmt)).mappings().first()
        if not row:
            raise NotFoundException("Patient not found")
        return dict(row)

    async def _ensure_owner(self, owner_id: int) -> None:
        found = (await self.db.execute(select(owners.c.id).where(owners.c.id == owner_id))).first()
        if not found:
            raise ValidationException(f"Owner {owner_id} not found")

    async def register_patient(self, data: PatientCreate, actor: str) -> PatientResponse:
        """
        Register a new patient for an existing owner.

        Raises:
            ValidationException: If the owner does not exist
        """
        await self._ensure_owner(data.owner_id)

        values = data.model_dump()
        values["species"] = data.species.value
        values["is_active"] = True

        stmt = insert(patients).values(**values).returning(patients)
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_creation(PATIENTS_TABLE, row["id"], row, actor)
        await self.db.commit()

        logger.info("patient_registered", patient_id=row["id"], owner_id=row["owner_id"])
        return to_response(row)

    async def get_patient(self, patient_id: int) -> PatientResponse:
        """
        Get patient by ID.

        Raises:
            NotFoundException: If patient not found
        """
        return to_response(await self._get_row(patient_id))

    async def list_patients(self, filters: PatientFilters) -> PatientListResponse:
        """List patients with filtering and pagination."""
        conditions = []
        if filters.owner_id:
            conditions.append(patients.c.owner_id == filters.owner_id)
        if filters.species:
            conditions.append(patients.c.species == filters.species.value)
        if filters.is_active is not None:
            conditions.append(patients.c.is_active.is_(filters.is_active))
        if filters.search:
            conditions.append(patients.c.name.ilike(f"%{filters.search.strip()}%"))

        count_stmt = select(func.count()).select_from(patients).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(patients)
            .where(*conditions)
            .order_by(patients.c.name, patients.c.id)
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return PatientListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_response(dict(row)) for row in rows],
        )

    async def update_patient(
        self,
        patient_id: int,
        data: PatientUpdate,
        actor: str,
    ) -> PatientResponse:
        """Update a patient profile."""
        before = await self._get_row(patient_id)

        update_values: dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            update_values[field] = value.value if field == "species" else value

        if "owner_id" in update_values:
            await self._ensure_owner(update_values["owner_id"])

        if not update_values:
            return to_response(before)

        return await self._apply(patient_id, before, update_values, actor)

    async def set_active(self, patient_id: int, is_active: bool, actor: str) -> PatientResponse:
        """Activate or deactivate a patient."""
        before = await self._get_row(patient_id)
        if before["is_active"] == is_active:
            return to_response(before)

        response = await self._apply(patient_id, before, {"is_active": is_active}, actor)
        logger.info(
            "patient_status_changed",
            patient_id=patient_id,
            is_active=is_active,
            actor=actor,
        )
        return response

    async def _apply(
        self,
        patient_id: int,
        before: dict,
        update_values: dict[str, Any],
        actor: str,
    ) -> PatientResponse:
        update_values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(patients)
            .where(patients.c.id == patient_id)
            .values(**update_values)
            .returning(patients)
        )
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_update(PATIENTS_TABLE, patient_id, before, row, actor)
        await self.db.commit()
        return to_response(row)
