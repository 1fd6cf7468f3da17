import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.security import create_access_token, decode_token, get_password_hash, verify_password
from clinic.domain.auth.models import User, UserRole


@pytest.mark.auth
@pytest.mark.integration
@pytest.mark.asyncio
class TestAuthentication:
    """Test authentication endpoints and functionality."""

    async def test_register_user_success(self, client: AsyncClient, db_session: AsyncSession) -> None:
        """Test successful user registration."""
        user_data = {
            "email": "NewUser@Example.com",
            "password": "Password123",
            "firstName": "  New ",
            "lastName": "User",
            "phone": "+1234567890",
            "role": "doctor",
            "specialization": "Neurology",
        }

        response = await client.post("/api/auth/register", json=user_data)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["firstName"] == "New"
        assert data["user"]["role"] == "doctor"
        assert "password" not in data["user"]
        assert "passwordHash" not in data["user"]

        payload = decode_token(data["token"])
        assert payload["role"] == "doctor"
        assert payload["userId"] == data["user"]["id"]

        user = await db_session.scalar(select(User).where(User.email == "newuser@example.com"))
        assert user is not None
        assert user.password_hash != "Password123"
        assert verify_password("Password123", user.password_hash)

    async def test_register_doctor_creates_profile(self, client: AsyncClient, make_account) -> None:
        """Test a doctor account gets a generated licence and an empty schedule."""
        doctor = await make_account("doctor")

        assert doctor.profile["specialization"] == "General Medicine"
        assert doctor.profile["licenseNumber"].startswith("LIC-")
        assert doctor.profile["availability"]["monday"]["available"] is False

    async def test_register_doctor_with_schedule(self, client: AsyncClient, make_account) -> None:
        """Test a schedule given at registration is filled out and bookable."""
        doctor = await make_account(
            "doctor",
            availability={"monday": {"start": "09:00", "end": "10:00", "available": True}},
        )

        availability = doctor.profile["availability"]
        assert availability["monday"] == {"start": "09:00", "end": "10:00", "available": True}
        assert availability["tuesday"] == {"start": None, "end": None, "available": False}

        slots = await client.get(
            f"/api/doctors/{doctor.profile_id}/available-slots",
            params={"date": "2030-01-07"},
            headers=doctor.headers,
        )
        assert slots.status_code == 200
        assert slots.json()["availableSlots"] == ["09:00", "09:30"]

    async def test_register_doctor_malformed_schedule(self, client: AsyncClient) -> None:
        """Test registration rejects schedules the slot generator cannot read."""
        for availability in (
            {"monday": {"start": "9am", "end": "5pm", "available": True}},
            {"monday": "yes"},
            {"monday": {"start": "10:00", "end": "09:00", "available": True}},
            {"someday": {"start": "09:00", "end": "10:00", "available": True}},
        ):
            response = await client.post("/api/auth/register", json={
                "email": "schedule@example.com",
                "password": "secret123",
                "firstName": "Bad",
                "lastName": "Schedule",
                "role": "doctor",
                "availability": availability,
            })

            assert response.status_code == 400, availability
            assert response.json()["errorCode"] == "VALIDATION_ERROR"

    async def test_register_patient_creates_profile(self, client: AsyncClient, patient) -> None:
        assert patient.user["role"] == "patient"
        assert patient.profile["bloodGroup"] == "O+"
        assert patient.profile["height"] == 175

    async def test_register_defaults_to_patient(self, client: AsyncClient) -> None:
        response = await client.post("/api/auth/register", json={
            "email": "plain@example.com",
            "password": "secret123",
            "firstName": "Plain",
            "lastName": "User",
        })

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "patient"

    async def test_register_user_duplicate_email(self, client: AsyncClient, patient) -> None:
        """Test registration with duplicate email."""
        user_data = {
            "email": patient.user["email"].upper(),
            "password": "Password123",
            "firstName": "Different",
            "lastName": "User",
        }

        response = await client.post("/api/auth/register", json=user_data)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "User already exists"
        assert data["errorCode"] == "USER_EXISTS"

    async def test_register_short_password(self, client: AsyncClient) -> None:
        """Test registration with a password under six characters."""
        response = await client.post("/api/auth/register", json={
            "email": "short@example.com",
            "password": "abc",
            "firstName": "Short",
            "lastName": "Password",
        })

        assert response.status_code == 400
        data = response.json()
        assert data["errorCode"] == "VALIDATION_ERROR"
        assert data["errors"]

    async def test_register_invalid_blood_group(self, client: AsyncClient) -> None:
        response = await client.post("/api/auth/register", json={
            "email": "blood@example.com",
            "password": "secret123",
            "firstName": "Blood",
            "lastName": "Group",
            "bloodGroup": "C+",
        })

        assert response.status_code == 400

    async def test_login_success(self, client: AsyncClient, patient) -> None:
        """Test successful login."""
        login_data = {
            "email": patient.user["email"],
            "password": "secret123"
        }

        response = await client.post("/api/auth/login", json=login_data)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["user"]["id"] == patient.user_id
        assert decode_token(data["token"])["token_type"] == "access"

    async def test_login_invalid_credentials(self, client: AsyncClient, patient) -> None:
        """Test login with invalid credentials."""
        login_data = {
            "email": patient.user["email"],
            "password": "wrongpassword"
        }

        response = await client.post("/api/auth/login", json=login_data)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    async def test_login_unknown_email(self, client: AsyncClient) -> None:
        response = await client.post("/api/auth/login", json={
            "email": "nobody@example.com",
            "password": "secret123",
        })

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    async def test_get_profile(self, client: AsyncClient, doctor) -> None:
        """Test getting the current user with the role profile."""
        response = await client.get("/api/auth/profile", headers=doctor.headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == doctor.user_id
        assert data["profile"]["userId"] == doctor.user_id
        assert data["profile"]["specialization"] == "Cardiology"

    async def test_get_profile_admin_has_no_role_profile(self, client: AsyncClient, admin) -> None:
        response = await client.get("/api/auth/profile", headers=admin.headers)

        assert response.status_code == 200
        assert response.json()["profile"] is None

    async def test_update_profile(self, client: AsyncClient, patient) -> None:
        """Test updating contact and patient fields."""
        response = await client.put(
            "/api/auth/profile",
            json={"phone": "+15550001", "weight": 68.5, "firstName": "Renamed"},
            headers=patient.headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["phone"] == "+15550001"
        assert response.json()["user"]["firstName"] == "Renamed"

        profile = await client.get("/api/auth/profile", headers=patient.headers)
        assert profile.json()["profile"]["weight"] == 68.5

    async def test_update_profile_ignores_null(self, client: AsyncClient, patient) -> None:
        """Test an explicit null leaves a required field untouched."""
        response = await client.put(
            "/api/auth/profile",
            json={"firstName": None},
            headers=patient.headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["firstName"] == patient.user["firstName"]


@pytest.mark.auth
@pytest.mark.integration
@pytest.mark.asyncio
class TestTokenValidation:
    """Test bearer token handling on protected routes."""

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json()["message"] == "Access token required"

    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid token"

    async def test_token_for_deleted_user(self, client: AsyncClient) -> None:
        token = create_access_token("missing-user", data={"userId": "missing-user", "role": "patient"})

        response = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    async def test_role_guard(self, client: AsyncClient, patient) -> None:
        """Test a patient cannot reach a staff-only listing."""
        response = await client.get("/api/patients", headers=patient.headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Insufficient permissions."


@pytest.mark.auth
@pytest.mark.integration
@pytest.mark.asyncio
class TestAdminProfileEdit:
    """Test administrators editing other users."""

    async def test_admin_updates_doctor(self, client: AsyncClient, admin, doctor) -> None:
        response = await client.put(
            f"/api/admin/users/{doctor.user_id}/profile",
            json={"phone": "+15559999", "consultationFee": 80},
            headers=admin.headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated"
        assert response.json()["user"]["phone"] == "+15559999"

        profile = await client.get("/api/doctors/me", headers=doctor.headers)
        assert profile.json()["doctor"]["consultationFee"] == 80

    async def test_admin_update_unknown_user(self, client: AsyncClient, admin) -> None:
        response = await client.put(
            "/api/admin/users/unknown/profile",
            json={"phone": "+15559999"},
            headers=admin.headers,
        )

        assert response.status_code == 404

    async def test_non_admin_rejected(self, client: AsyncClient, doctor, patient) -> None:
        response = await client.put(
            f"/api/admin/users/{patient.user_id}/profile",
            json={"phone": "+15559999"},
            headers=doctor.headers,
        )

        assert response.status_code == 403


@pytest.mark.unit
class TestSecurity:
    """Test password hashing helpers."""

    def test_password_hashing(self) -> None:
        """Test password hashing and verification."""
        password = "TestPassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed)
        assert not verify_password("WrongPassword", hashed)

    def test_role_values(self) -> None:
        assert [role.value for role in UserRole] == ["patient", "doctor", "admin"]
