"""Owner service for business logic."""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.exceptions import NotFoundException
from vetflow.models.owners import owners
from vetflow.schemas.owners import OwnerCreate, OwnerListResponse, OwnerResponse, OwnerUpdate
from vetflow.services.audit_service import AuditService

logger = structlog.get_logger()

OWNERS_TABLE = "owners"


class OwnerService:
    """Service for managing pet owners."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    async def _get_row(self, owner_id: int) -> dict:
        row = (await self.db.execute(select(owners).where(owners.c.id == owner_id))).mappings().first()
        if not row:
            raise NotFoundException("Owner not found")
        return dict(row)

    async def create_owner(self, data: OwnerCreate, actor: str) -> OwnerResponse:
        """Register a new owner."""
        stmt = insert(owners).values(**data.model_dump()).returning(owners)
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_creation(OWNERS_TABLE, row["id"], row, actor)
        await self.db.commit()

        logger.info("owner_created", owner_id=row["id"], actor=actor)
        return OwnerResponse.model_validate(row)

    async def get_owner(self, owner_id: int) -> OwnerResponse:
        """
        Get owner by ID.

        Raises:
            NotFoundException: If owner not found
        """
        return OwnerResponse.model_validate(await self._get_row(owner_id))

    async def list_owners(
        self,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> OwnerListResponse:
        """List owners, optionally matching name, email or phone."""
        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    owners.c.name.ilike(pattern),
                    owners.c.email.ilike(pattern),
                    owners.c.phone.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(owners).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(owners)
            .where(*conditions)
            .order_by(owners.c.name, owners.c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return OwnerListResponse(
            total=total,
            page=page,
            page_size=page_size,
            items=[OwnerResponse.model_validate(dict(row)) for row in rows],
        )

    async def update_owner(self, owner_id: int, data: OwnerUpdate, actor: str) -> OwnerResponse:
        """Update owner contact details."""
        before = await self._get_row(owner_id)

        update_values: dict[str, Any] = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in ("email", "address")
        }
        if not update_values:
            return OwnerResponse.model_validate(before)

        update_values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(owners)
            .where(owners.c.id == owner_id)
            .values(**update_values)
            .returning(owners)
        )
        row = dict((await self.db.execute(stmt)).mappings().one())
        await self.audit.record_update(OWNERS_TABLE, owner_id, before, row, actor)
        await self.db.commit()

        return OwnerResponse.model_validate(row)
