from typing import Optional, Dict, Any, Tuple
import time
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from clinic.core.security import create_user_token, get_password_hash, verify_password
from clinic.domain.auth.models import User, UserRole
from clinic.domain.auth.repository import UserRepository
from clinic.domain.doctors.models import Doctor, default_availability, normalize_availability
from clinic.domain.doctors.repository import DoctorRepository
from clinic.domain.patients.repository import PatientRepository

# Profile fields a user (or an admin on their behalf) may edit
USER_FIELDS = ("first_name", "last_name", "phone", "date_of_birth", "gender", "address", "profile_image")
DOCTOR_FIELDS = ("specialization", "experience", "bio", "consultation_fee")
PATIENT_FIELDS = ("blood_group", "height", "weight", "emergency_contact")

DEFAULT_SPECIALIZATION = "General Medicine"


def _pick(data: Dict[str, Any], fields) -> Dict[str, Any]:
    return {key: data[key] for key in fields if key in data}


class AuthenticationService:
    """Service layer for registration, login and profile management"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.doctor_repo = DoctorRepository(db)
        self.patient_repo = PatientRepository(db)

    async def register_user(self, data: Dict[str, Any]) -> Tuple[User, str]:
        """Create an account and its role profile; returns the user and a token"""
        email = data["email"].lower()
        if await self.user_repo.get_by_email(email):
            raise ConflictError("User already exists", error_code="USER_EXISTS")

        role = data.get("role") or UserRole.PATIENT
        user_data = _pick(data, USER_FIELDS)
        user_data.update({
            "email": email,
            "password_hash": get_password_hash(data["password"]),
            "role": role,
        })

        doctor_data = None
        patient_data = None
        if role == UserRole.DOCTOR:
            availability = data.get("availability")
            doctor_data = {
                "specialization": data.get("specialization") or DEFAULT_SPECIALIZATION,
                "license_number": data.get("license_number") or await self._generate_license_number(),
                "experience": data.get("experience") or 0,
                "availability": normalize_availability(availability) if availability else default_availability(),
            }
        elif role == UserRole.PATIENT:
            patient_data = _pick(data, ("blood_group", "height", "weight"))

        try:
            user = await self.user_repo.create(user_data, doctor_data=doctor_data, patient_data=patient_data)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User already exists", error_code="USER_EXISTS")

        logger.info(f"Registered {role.value} account {user.id} ({user.email})")
        return user, create_user_token(user)

    async def authenticate_user(self, email: str, password: str) -> Tuple[User, str]:
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid credentials", error_code="INVALID_CREDENTIALS")

        logger.info(f"User {user.id} logged in")
        return user, create_user_token(user)

    async def get_profile(self, user: User):
        """The doctor or patient record belonging to ``user``, if any"""
        if user.role == UserRole.DOCTOR:
            return await self.doctor_repo.get_by_user_id(user.id)
        if user.role == UserRole.PATIENT:
            return await self.patient_repo.get_by_user_id(user.id)
        return None

    async def update_profile(self, user: User, data: Dict[str, Any]) -> User:
        """Apply contact fields to the user and role fields to its profile"""
        user = await self.user_repo.update(user, _pick(data, USER_FIELDS))

        profile = await self.get_profile(user)
        if profile is not None:
            fields = DOCTOR_FIELDS if user.role == UserRole.DOCTOR else PATIENT_FIELDS
            role_data = _pick(data, fields)
            if role_data:
                repo = self.doctor_repo if user.role == UserRole.DOCTOR else self.patient_repo
                await repo.update(profile, role_data)

        logger.info(f"Profile updated for user {user.id}")
        return user

    async def admin_update_profile(self, admin: User, user_id: str, data: Dict[str, Any]) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        logger.info(f"Admin {admin.id} updating profile of user {user.id}")
        return await self.update_profile(user, data)

    async def _generate_license_number(self) -> str:
        stamp = int(time.time() * 1000)
        while True:
            candidate = f"LIC-{stamp}"
            taken = await self.db.scalar(
                select(Doctor.id).where(Doctor.license_number == candidate)
            )
            if not taken:
                return candidate
            stamp += 1
