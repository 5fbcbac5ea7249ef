from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Load environment variables from .env file
load_dotenv()

from operabase.core.redis_client import get_cache_manager
from operabase.database import get_db
from operabase.dependencies import get_ai_pause_service
from operabase.main import app
from operabase.models import (
    appointment_tags,
    clinic_users,
    clinics,
    contacts,
    conversations,
    livia_configurations,
    metadata,
    users,
)
from operabase.services.ai_pause_service import AiPauseService

# Tests run against an in-memory database shared through a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed calendar used across tests
MONDAY = "2030-01-07"
TUESDAY = "2030-01-08"
SATURDAY = "2030-01-12"

FIXED_NOW = datetime(2030, 1, 7, 14, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock returning aware datetimes."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,  # Set to True for SQL debugging
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    """Clock the pause policy reads in tests."""
    return FakeClock()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, clock: FakeClock) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None
    app.dependency_overrides[get_ai_pause_service] = lambda: AiPauseService(clock=clock)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_clinic(db_session: AsyncSession) -> dict:
    """Clinic open Monday to Friday, 08:00-18:00, lunch 12:00-13:00."""
    clinic_data = {
        "name": "Clínica Teste",
        "working_days": ["monday", "tuesday", "wednesday", "thursday", "friday"],
        "work_start": "08:00",
        "work_end": "18:00",
        "has_lunch_break": True,
        "lunch_start": "12:00",
        "lunch_end": "13:00",
    }
    result = await db_session.execute(insert(clinics).values(**clinic_data).returning(clinics.c.id))
    clinic_id = result.scalar_one()
    await db_session.commit()
    return {"id": clinic_id, **clinic_data}


@pytest_asyncio.fixture
async def no_lunch_clinic(db_session: AsyncSession) -> dict:
    """Clinic open Monday to Friday, 08:00-18:00, without lunch break."""
    clinic_data = {
        "name": "Clínica Sem Almoço",
        "working_days": ["monday", "tuesday", "wednesday", "thursday", "friday"],
        "work_start": "08:00",
        "work_end": "18:00",
        "has_lunch_break": False,
    }
    result = await db_session.execute(insert(clinics).values(**clinic_data).returning(clinics.c.id))
    clinic_id = result.scalar_one()
    await db_session.commit()
    return {"id": clinic_id, **clinic_data}


@pytest_asyncio.fixture
async def round_the_clock_clinic(db_session: AsyncSession) -> dict:
    """Clinic open every day, 00:00-23:59, without lunch break."""
    clinic_data = {
        "name": "Clínica 24 Horas",
        "working_days": [
            "monday",
            "tuesday",
            "wednesday",
            "thursday",
            "friday",
            "saturday",
            "sunday",
        ],
        "work_start": "00:00",
        "work_end": "23:59",
        "has_lunch_break": False,
    }
    result = await db_session.execute(insert(clinics).values(**clinic_data).returning(clinics.c.id))
    clinic_id = result.scalar_one()
    await db_session.commit()
    return {"id": clinic_id, **clinic_data}


async def add_professional(
    db_session: AsyncSession,
    clinic_id: int,
    email: str,
    is_active: bool = True,
) -> int:
    """Insert a user and make them a professional of the clinic."""
    result = await db_session.execute(
        insert(users).values(name="Dra. Ana", email=email).returning(users.c.id)
    )
    user_id = result.scalar_one()
    await db_session.execute(
        insert(clinic_users).values(
            clinic_id=clinic_id,
            user_id=user_id,
            role="professional",
            is_professional=True,
            is_active=is_active,
        )
    )
    await db_session.commit()
    return user_id


async def add_contact(db_session: AsyncSession, clinic_id: int, name: str = "Maria Silva") -> int:
    """Insert a contact of the clinic."""
    result = await db_session.execute(
        insert(contacts).values(clinic_id=clinic_id, name=name, phone="+5511999990000").returning(contacts.c.id)
    )
    contact_id = result.scalar_one()
    await db_session.commit()
    return contact_id


@pytest_asyncio.fixture
async def professional_id(db_session: AsyncSession, test_clinic: dict) -> int:
    """Active professional of the test clinic."""
    return await add_professional(db_session, test_clinic["id"], "ana@clinic.test")


@pytest_asyncio.fixture
async def contact_id(db_session: AsyncSession, test_clinic: dict) -> int:
    """Contact of the test clinic."""
    return await add_contact(db_session, test_clinic["id"])


@pytest_asyncio.fixture
async def tag_id(db_session: AsyncSession, test_clinic: dict) -> int:
    """Appointment tag of the test clinic."""
    result = await db_session.execute(
        insert(appointment_tags)
        .values(clinic_id=test_clinic["id"], name="Retorno")
        .returning(appointment_tags.c.id)
    )
    value = result.scalar_one()
    await db_session.commit()
    return value


@pytest_asyncio.fixture
async def conversation_id(db_session: AsyncSession, test_clinic: dict, contact_id: int) -> int:
    """Conversation with the assistant active and not paused."""
    result = await db_session.execute(
        insert(conversations)
        .values(clinic_id=test_clinic["id"], contact_id=contact_id)
        .returning(conversations.c.id)
    )
    value = result.scalar_one()
    await db_session.commit()
    return value


@pytest_asyncio.fixture
async def pause_config(db_session: AsyncSession, test_clinic: dict) -> dict:
    """Assistant configuration pausing for two hours."""
    config = {"clinic_id": test_clinic["id"], "off_duration": 2, "off_unit": "hours"}
    await db_session.execute(insert(livia_configurations).values(**config))
    await db_session.commit()
    return config


@pytest.fixture
def sample_appointment_data(contact_id: int, professional_id: int) -> dict:
    """Sample appointment payload for the test clinic."""
    return {
        "contact_id": contact_id,
        "professional_id": professional_id,
        "scheduled_date": MONDAY,
        "scheduled_time": "09:00",
        "duration_minutes": 60,
        "doctor_name": "Dra. Ana",
        "appointment_type": "consulta",
    }
