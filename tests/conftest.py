import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_clinic.db")

import itertools
from dataclasses import dataclass
from typing import AsyncGenerator, Dict, Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clinic.main import app
from clinic.infrastructure.database import Base, get_db, import_models

# 2030-01-07 is a Monday, 2030-01-06 a Sunday
MONDAY = "2030-01-07"
SUNDAY = "2030-01-06"

WORKWEEK_AVAILABILITY = {
    day: {"start": "09:00", "end": "17:00", "available": True}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}
WORKWEEK_AVAILABILITY.update({
    "saturday": {"start": None, "end": None, "available": False},
    "sunday": {"start": None, "end": None, "available": False},
})


@dataclass
class Account:
    """A registered user as seen by the API"""
    token: str
    user: Dict[str, Any]
    profile: Optional[Dict[str, Any]]

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def user_id(self) -> str:
        return self.user["id"]

    @property
    def profile_id(self) -> str:
        return self.profile["id"]


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    """A fresh SQLite database file per test."""
    import_models()
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for direct repository tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database dependency override."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_account(client: AsyncClient):
    """Register users through the API and return them as ``Account``s."""
    counter = itertools.count(1)

    async def _make_account(role: str = "patient", **extra) -> Account:
        n = next(counter)
        payload = {
            "email": f"{role}{n}@example.com",
            "password": "secret123",
            "firstName": role.capitalize(),
            "lastName": f"Number{n}",
            "role": role,
        }
        payload.update(extra)

        response = await client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        token = response.json()["token"]

        profile = await client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert profile.status_code == 200, profile.text
        body = profile.json()
        return Account(token=token, user=body["user"], profile=body["profile"])

    return _make_account


async def _make_doctor(client: AsyncClient, make_account, **extra) -> Account:
    doctor = await make_account("doctor", **extra)
    response = await client.put(
        f"/api/doctors/{doctor.profile_id}/availability",
        json={"availability": WORKWEEK_AVAILABILITY},
        headers=doctor.headers,
    )
    assert response.status_code == 200, response.text
    doctor.profile = response.json()["doctor"]
    return doctor


@pytest.fixture(scope="function")
async def patient(make_account) -> Account:
    return await make_account("patient", bloodGroup="O+", height=175, weight=70)


@pytest.fixture(scope="function")
async def other_patient(make_account) -> Account:
    return await make_account("patient")


@pytest.fixture(scope="function")
async def doctor(client: AsyncClient, make_account) -> Account:
    """A doctor working Monday to Friday, 09:00-17:00."""
    return await _make_doctor(client, make_account, specialization="Cardiology", experience=12)


@pytest.fixture(scope="function")
async def other_doctor(client: AsyncClient, make_account) -> Account:
    return await _make_doctor(client, make_account, specialization="Dermatology", experience=4)


@pytest.fixture(scope="function")
async def admin(make_account) -> Account:
    return await make_account("admin")


@pytest.fixture(scope="function")
def appointment_data(doctor: Account, patient: Account) -> dict:
    """Sample booking payload for the default doctor and patient."""
    return {
        "doctorId": doctor.profile_id,
        "patientId": patient.profile_id,
        "appointmentDate": MONDAY,
        "appointmentTime": "10:00",
        "reason": "Chest pain",
        "symptoms": ["chest pain", "shortness of breath"],
    }


@pytest.fixture(scope="function")
def sample_medicine_data() -> dict:
    """Sample medicine data for testing."""
    return {
        "name": "Amoxicillin",
        "genericName": "Amoxicillin",
        "brand": "Amoxil",
        "category": "antibiotic",
        "dosageForm": "capsule",
        "strength": "500mg",
        "price": 12.5,
        "stockQuantity": 40,
        "prescriptionRequired": True,
        "manufacturer": "GSK",
        "tags": ["infection"],
    }


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as authentication related"
    )
    config.addinivalue_line(
        "markers", "appointments: mark test as appointment booking related"
    )
    config.addinivalue_line(
        "markers", "prescriptions: mark test as prescription related"
    )
    config.addinivalue_line(
        "markers", "medicines: mark test as medicine store related"
    )
    config.addinivalue_line(
        "markers", "messages: mark test as messaging related"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
