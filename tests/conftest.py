"""
Fixtures compartidas para Pytest.
Configura base de datos de test, clientes HTTP y datos base del marketplace.
"""

import os
from collections.abc import AsyncGenerator
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from cryptography.fernet import Fernet

# La configuración se cachea al importar el paquete: definir antes
os.environ.setdefault("FERNET_KEY", Fernet.generate_key().decode())
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from dental_marketplace.auth.jwt import create_access_token  # noqa: E402
from dental_marketplace.core.security import encrypt_pii, hash_identifier, hash_password  # noqa: E402
from dental_marketplace.database import Base, get_db  # noqa: E402
from dental_marketplace.main import app  # noqa: E402
from dental_marketplace.models import (  # noqa: E402
    Clinic,
    ClinicStatus,
    ClinicWorkingHours,
    DayOfWeek,
    Gender,
    Patient,
    PatientStatus,
    Service,
    ServiceCategory,
    User,
    UserRole,
)

# ── Engine de test (SQLite async) ────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

PASSWORD = "TestPass123"


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Crea y destruye las tablas para cada test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Helpers ──────────────────────────────────────────


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


def future_day(days: int = 7) -> date:
    """Fecha futura; todas las clínicas de test atienden los 7 días."""
    return date.today() + timedelta(days=days)


async def create_user(
    db: AsyncSession,
    email: str,
    role: UserRole = UserRole.UNASSIGNED,
    name: str = "Usuario Test",
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(PASSWORD),
        name=name,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_patient_user(
    db: AsyncSession,
    email: str,
    document: str,
    name: str = "Paciente Test",
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(PASSWORD),
        name=name,
        role=UserRole.PATIENT,
    )
    user.patient = Patient(
        name=name,
        email=email,
        ic_or_passport=encrypt_pii(document),
        ic_or_passport_hash=hash_identifier(document),
        phone=encrypt_pii("+60123456789"),
        age=30,
        address="Jalan Test 1, Kuala Lumpur",
        gender=Gender.FEMALE,
        status=PatientStatus.ACTIVE,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_clinic(
    db: AsyncSession,
    owner_email: str,
    name: str = "Clínica Dental Sonrisa",
    status: ClinicStatus = ClinicStatus.APPROVED,
    open_days: list[DayOfWeek] | None = None,
) -> Clinic:
    """Clínica con dueño, horario 09:00–17:00 (grilla de 30 min) y sin descanso."""
    owner = User(
        email=owner_email,
        hashed_password=hash_password(PASSWORD),
        name="Dueño Test",
        role=UserRole.CLINIC_OWNER,
    )
    clinic = Clinic(
        owner=owner,
        name=name,
        address="Jalan Klinik 10, Kuala Lumpur",
        phone="+60312345678",
        email="contacto@clinica.com",
        description="Clínica dental de pruebas con atención general.",
        documents=["https://docs.centro.com/licencia.pdf"],
        timezone="UTC",
        status=status,
        working_hours=[
            ClinicWorkingHours(
                day=day,
                open_time=time(9, 0),
                close_time=time(17, 0),
                slot_duration_minutes=30,
            )
            for day in (open_days if open_days is not None else list(DayOfWeek))
        ],
    )
    db.add(clinic)
    await db.commit()
    await db.refresh(clinic)
    await db.refresh(owner)
    return clinic


async def create_service(
    db: AsyncSession,
    clinic: Clinic,
    name: str = "Limpieza dental",
    duration_minutes: int | None = 30,
    price: str | None = "50.00",
    is_active: bool = True,
) -> Service:
    service = Service(
        clinic_id=clinic.id,
        name=name,
        category=ServiceCategory.CLEANING,
        duration_minutes=duration_minutes,
        price=Decimal(price) if price is not None else None,
        is_active=is_active,
    )
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


# ── Fixtures de datos ────────────────────────────────


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@test.com", UserRole.ADMIN, "Admin Test")


@pytest_asyncio.fixture
async def unassigned_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "nuevo@test.com")


@pytest_asyncio.fixture
async def patient_user(db_session: AsyncSession) -> User:
    return await create_patient_user(db_session, "paciente@test.com", "A1234567")


@pytest_asyncio.fixture
async def clinic(db_session: AsyncSession) -> Clinic:
    """Clínica APPROVED que atiende todos los días."""
    return await create_clinic(db_session, "dueno@test.com")


@pytest_asyncio.fixture
async def owner_user(db_session: AsyncSession, clinic: Clinic) -> User:
    await db_session.refresh(clinic, ["owner"])
    return clinic.owner


@pytest_asyncio.fixture
async def service(db_session: AsyncSession, clinic: Clinic) -> Service:
    return await create_service(db_session, clinic)


@pytest.fixture
def booking_day() -> date:
    return future_day()


async def book(
    client: AsyncClient,
    user: User,
    clinic: Clinic,
    service: Service,
    day: date,
    hour: int = 10,
    minute: int = 0,
    minutes: int = 30,
) -> dict:
    """Reserva vía API y devuelve la cita creada."""
    start = datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)
    response = await client.post(
        "/api/v1/appointments",
        json={
            "clinic_id": str(clinic.id),
            "service_id": str(service.id),
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(minutes=minutes)).isoformat(),
        },
        headers=auth_headers(user),
    )
    assert response.status_code == 201, response.text
    return response.json()
