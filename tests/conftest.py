import asyncio
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Settings are read at import time, so the test configuration must be in place first
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ["CACHE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "console"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from vetflow.core.security import create_access_token, get_password_hash  # noqa: E402
from vetflow.database import get_async_database_url, get_db  # noqa: E402
from vetflow.main import app  # noqa: E402
from vetflow.models import metadata, owners, patients, system_users  # noqa: E402
from vetflow.scheduling.ports import Actor  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"

if TEST_DATABASE_URL.startswith("sqlite"):
    # One shared in-memory connection so every session sees the same tables
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
else:
    test_engine = create_async_engine(
        get_async_database_url(TEST_DATABASE_URL),
        echo=False,
        poolclass=NullPool,
    )

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, username: str, role: str, **extra) -> dict:
    values = {
        "username": username,
        "email": f"{username}@vetclinic.com",
        "password_hash": get_password_hash(TEST_PASSWORD),
        "role": role,
        "first_name": extra.pop("first_name", username.title()),
        "last_name": extra.pop("last_name", "Test"),
        "is_active": extra.pop("is_active", True),
    }
    result = await db_session.execute(insert(system_users).values(**values).returning(system_users))
    user = dict(result.mappings().one())
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> dict:
    """Administrator account."""
    return await _create_user(db_session, "admin", "admin")


@pytest_asyncio.fixture
async def vet_user(db_session: AsyncSession) -> dict:
    """Active veterinarian account."""
    return await _create_user(db_session, "drsmith", "veterinarian", first_name="Anna", last_name="Smith")


@pytest_asyncio.fixture
async def other_vet_user(db_session: AsyncSession) -> dict:
    """Second active veterinarian account."""
    return await _create_user(db_session, "drjones", "veterinarian", first_name="Ben", last_name="Jones")


@pytest_asyncio.fixture
async def assistant_user(db_session: AsyncSession) -> dict:
    """Front-desk assistant account."""
    return await _create_user(db_session, "frontdesk", "assistant")


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> dict:
    """A pet owner."""
    result = await db_session.execute(
        insert(owners)
        .values(name="Maria Garcia", phone="+15551234567", email="maria@example.com")
        .returning(owners)
    )
    row = dict(result.mappings().one())
    await db_session.commit()
    return row


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession, owner: dict) -> dict:
    """An active patient belonging to ``owner``."""
    result = await db_session.execute(
        insert(patients)
        .values(name="Rex", species="dog", breed="Beagle", owner_id=owner["id"], is_active=True)
        .returning(patients)
    )
    row = dict(result.mappings().one())
    await db_session.commit()
    return row


def make_headers(user: dict) -> dict:
    """Bearer headers for a user."""
    token = create_access_token(
        data={"sub": str(user["id"]), "username": user["username"], "role": user["role"]},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


def make_actor(user: dict) -> Actor:
    """Scheduling actor for a user."""
    return Actor(id=user["id"], username=user["username"], role=user["role"])


@pytest.fixture
def admin_headers(admin_user: dict) -> dict:
    return make_headers(admin_user)


@pytest.fixture
def vet_headers(vet_user: dict) -> dict:
    return make_headers(vet_user)


@pytest.fixture
def assistant_headers(assistant_user: dict) -> dict:
    return make_headers(assistant_user)


@pytest.fixture
def tomorrow_at_nine() -> datetime:
    """A future slot start, in UTC, aligned to the hour."""
    tomorrow = datetime.now(UTC) + timedelta(days=1)
    return tomorrow.replace(hour=9, minute=0, second=0, microsecond=0)


@pytest.fixture
def appointment_payload(patient: dict, vet_user: dict, tomorrow_at_nine: datetime) -> dict:
    """Request body for booking ``patient`` with ``vet_user``."""
    return {
        "patient_id": patient["id"],
        "veterinarian_id": vet_user["id"],
        "scheduled_at": tomorrow_at_nine.isoformat(),
        "duration_minutes": 30,
        "type": "checkup",
        "priority": "medium",
        "reason": "Annual checkup",
    }


@pytest.fixture
def other_vet_headers(other_vet_user: dict) -> dict:
    return make_headers(other_vet_user)


@pytest.fixture
def admin_actor(admin_user: dict) -> Actor:
    return make_actor(admin_user)


@pytest.fixture
def vet_actor(vet_user: dict) -> Actor:
    return make_actor(vet_user)


@pytest.fixture
def assistant_actor(assistant_user: dict) -> Actor:
    return make_actor(assistant_user)


class InMemoryAppointmentStore:
    """Dict-backed appointment store for exercising the scheduling core without a database."""

    def __init__(self):
        self.appointments: dict[int, dict] = {}
        self.practitioners: dict[int, dict] = {}
        self.patients: dict[int, dict] = {}
        self.locked: list[int] = []
        self.locked_appointments: list[int] = []
        self._row_locks: dict[int, asyncio.Lock] = {}
        self._held: dict[asyncio.Task, list[asyncio.Lock]] = {}
        self._undo: dict[asyncio.Task, list[tuple[int, dict | None]]] = {}
        self.writes = 0
        self._next_id = 1

    def add_practitioner(self, practitioner_id: int, role: str = "veterinarian", is_active: bool = True):
        self.practitioners[practitioner_id] = {
            "id": practitioner_id,
            "username": f"vet{practitioner_id}",
            "role": role,
            "is_active": is_active,
        }

    def add_patient(self, patient_id: int, is_active: bool = True):
        self.patients[patient_id] = {"id": patient_id, "name": f"pet{patient_id}", "is_active": is_active}

    def add_appointment(self, veterinarian_id: int, scheduled_at: datetime, duration: int = 30, **extra) -> dict:
        appointment = {
            "id": self._next_id,
            "patient_id": extra.pop("patient_id", 1),
            "veterinarian_id": veterinarian_id,
            "scheduled_at": scheduled_at,
            "duration_minutes": duration,
            "type": extra.pop("type", "checkup"),
            "priority": extra.pop("priority", "medium"),
            "status": extra.pop("status", "scheduled"),
            "reason": extra.pop("reason", "Checkup"),
            "notes": extra.pop("notes", None),
            **extra,
        }
        self.appointments[self._next_id] = appointment
        self._next_id += 1
        return dict(appointment)

    @asynccontextmanager
    async def transaction(self):
        task = asyncio.current_task()
        self._undo[task] = []
        try:
            yield
        except Exception:
            for appointment_id, previous in reversed(self._undo[task]):
                if previous is None:
                    self.appointments.pop(appointment_id, None)
                else:
                    self.appointments[appointment_id] = previous
            raise
        finally:
            del self._undo[task]
            for lock in self._held.pop(task, []):
                lock.release()

    def _remember(self, appointment_id: int) -> None:
        undo = self._undo.get(asyncio.current_task())
        if undo is not None:
            previous = self.appointments.get(appointment_id)
            undo.append((appointment_id, dict(previous) if previous else None))

    async def get_appointment(self, appointment_id: int):
        appointment = self.appointments.get(appointment_id)
        row = dict(appointment) if appointment else None
        # Hand control back to the loop like a database round trip would
        await asyncio.sleep(0)
        return row

    async def lock_appointment(self, appointment_id: int):
        lock = self._row_locks.setdefault(appointment_id, asyncio.Lock())
        await lock.acquire()
        self._held.setdefault(asyncio.current_task(), []).append(lock)
        self.locked_appointments.append(appointment_id)
        return await self.get_appointment(appointment_id)

    async def list_appointments_for_practitioner(
        self, veterinarian_id, status_exclude, starts_before=None, starts_after=None
    ):
        excluded = set(status_exclude)
        return [
            dict(a)
            for a in self.appointments.values()
            if a["veterinarian_id"] == veterinarian_id
            and a["status"] not in excluded
            and (starts_before is None or a["scheduled_at"] < starts_before)
            and (starts_after is None or a["scheduled_at"] > starts_after)
        ]

    async def create_appointment(self, data, actor):
        self.writes += 1
        self._remember(self._next_id)
        return self.add_appointment(
            data["veterinarian_id"],
            data["scheduled_at"],
            data["duration_minutes"],
            **{k: v for k, v in data.items() if k not in ("veterinarian_id", "scheduled_at", "duration_minutes")},
        )

    async def update_appointment(self, appointment_id, patch, actor, expected_status=None):
        current = self.appointments[appointment_id]
        if expected_status is not None and current["status"] != expected_status:
            return None
        self.writes += 1
        self._remember(appointment_id)
        current.update(patch)
        return dict(self.appointments[appointment_id])

    async def get_practitioner(self, veterinarian_id):
        return self.practitioners.get(veterinarian_id)

    async def get_patient(self, patient_id):
        return self.patients.get(patient_id)

    async def lock_practitioner(self, veterinarian_id):
        self.locked.append(veterinarian_id)


@pytest.fixture
def memory_store() -> InMemoryAppointmentStore:
    """Store with veterinarian 1 and patient 1."""
    store = InMemoryAppointmentStore()
    store.add_practitioner(1)
    store.add_patient(1)
    return store
