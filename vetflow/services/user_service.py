"""User service for staff accounts and veterinarian lookups."""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.exceptions import ConflictException, NotFoundException
from vetflow.core.permissions import UserRole
from vetflow.core.redis_client import CacheManager
from vetflow.core.security import get_password_hash
from vetflow.models.system_users import system_users
from vetflow.schemas.users import UserCreate, UserUpdate

logger = structlog.get_logger()

# Columns safe to return and cache (everything but the password hash)
PUBLIC_COLUMNS = [c for c in system_users.c if c.name != "password_hash"]


def display_name(user: dict) -> str:
    """Full name when known, otherwise the username."""
    parts = [user.get("first_name"), user.get("last_name")]
    name = " ".join(p for p in parts if p)
    return name or user["username"]


class UserService:
    """Service for staff account operations."""

    # Cache TTL in seconds
    VETERINARIAN_CACHE_TTL = 900  # 15 minutes for individual veterinarians
    VETERINARIAN_LIST_CACHE_TTL = 300  # 5 minutes for lists

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_veterinarian_cache_key(veterinarian_id: int) -> str:
        """Generate cache key for veterinarian."""
        return f"veterinarian:{veterinarian_id}"

    def _invalidate_veterinarians(self) -> None:
        if self.cache:
            self.cache.delete_pattern("veterinarian:*")

    async def create_user(self, db: AsyncSession, user_data: UserCreate) -> dict:
        """
        Create a staff account.

        Raises:
            ConflictException: If the username or email is already taken
        """
        existing = await db.execute(
            select(system_users.c.id).where(
                (system_users.c.username == user_data.username)
                | (system_users.c.email == user_data.email)
            )
        )
        if existing.first():
            raise ConflictException("Username or email already registered")

        query = (
            insert(system_users)
            .values(
                username=user_data.username,
                email=user_data.email,
                password_hash=get_password_hash(user_data.password),
                role=user_data.role.value,
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                is_active=True,
            )
            .returning(*PUBLIC_COLUMNS)
        )

        result = await db.execute(query)
        user = result.mappings().first()
        await db.commit()

        if not user:
            raise ValueError("Failed to create user")

        logger.info("user_created", user_id=user["id"], role=user["role"])
        if user["role"] == UserRole.VETERINARIAN.value:
            self._invalidate_veterinarians()

        return dict(user)

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> dict | None:
        """Get user by ID without credentials."""
        query = select(*PUBLIC_COLUMNS).where(system_users.c.id == user_id)
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def get_user_credentials(self, db: AsyncSession, username: str) -> dict | None:
        """Get user row including the password hash, for authentication only."""
        query = select(system_users).where(system_users.c.username == username)
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def update_user(self, db: AsyncSession, user_id: int, user_data: UserUpdate) -> dict:
        """
        Update a staff account.

        Raises:
            NotFoundException: If the user does not exist
        """
        update_values: dict[str, Any] = {}
        for field, value in user_data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field == "password":
                update_values["password_hash"] = get_password_hash(value)
            elif isinstance(value, UserRole):
                update_values[field] = value.value
            else:
                update_values[field] = value

        if not update_values:
            user = await self.get_user_by_id(db, user_id)
            if not user:
                raise NotFoundException("User not found")
            return user

        update_values["updated_at"] = datetime.now(UTC)

        query = (
            update(system_users)
            .where(system_users.c.id == user_id)
            .values(**update_values)
            .returning(*PUBLIC_COLUMNS)
        )
        result = await db.execute(query)
        user = result.mappings().first()
        if not user:
            await db.rollback()
            raise NotFoundException("User not found")
        await db.commit()

        self._invalidate_veterinarians()
        return dict(user)

    async def record_login(self, db: AsyncSession, user_id: int) -> datetime:
        """Stamp the last successful login and return its time."""
        now = datetime.now(UTC)
        await db.execute(
            update(system_users).where(system_users.c.id == user_id).values(last_login=now)
        )
        await db.commit()
        return now

    async def list_veterinarians(self, db: AsyncSession) -> list[dict]:
        """List active veterinarians with caching."""
        cache_key = "veterinarian:list:active"
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached is not None:
                return cached

        query = (
            select(*PUBLIC_COLUMNS)
            .where(
                and_(
                    system_users.c.role == UserRole.VETERINARIAN.value,
                    system_users.c.is_active.is_(True),
                )
            )
            .order_by(system_users.c.last_name, system_users.c.first_name, system_users.c.username)
        )
        result = await db.execute(query)
        veterinarians = [self._to_veterinarian(dict(row)) for row in result.mappings().all()]

        if self.cache:
            self.cache.set_json(cache_key, veterinarians, ttl=self.VETERINARIAN_LIST_CACHE_TTL)

        return veterinarians

    async def get_veterinarian(self, db: AsyncSession, veterinarian_id: int) -> dict | None:
        """Get veterinarian by ID with caching."""
        if self.cache:
            cached = self.cache.get_json(self._get_veterinarian_cache_key(veterinarian_id))
            if cached:
                return cached

        user = await self.get_user_by_id(db, veterinarian_id)
        if not user or user["role"] != UserRole.VETERINARIAN.value:
            return None

        veterinarian = self._to_veterinarian(user)
        if self.cache:
            self.cache.set_json(
                self._get_veterinarian_cache_key(veterinarian_id),
                veterinarian,
                ttl=self.VETERINARIAN_CACHE_TTL,
            )
        return veterinarian

    @staticmethod
    def _to_veterinarian(user: dict) -> dict:
        return {
            "id": user["id"],
            "username": user["username"],
            "email": user["email"],
            "display_name": display_name(user),
            "is_active": user["is_active"],
            "last_login": user["last_login"],
            "created_at": user["created_at"],
        }
