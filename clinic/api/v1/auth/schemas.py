from datetime import date, datetime
from typing import Optional, Dict, Any, Union

from pydantic import EmailStr, Field, field_validator

from clinic.api.v1.doctors.schemas import DayAvailability, DoctorResponse, check_weekly_availability
from clinic.api.v1.patients.schemas import PatientResponse
from clinic.api.v1.schemas import ApiResponse, CamelModel
from clinic.domain.auth.models import Gender, UserRole
from clinic.domain.patients.models import BLOOD_GROUPS


class UserPublic(CamelModel):
    """User fields safe to expose; never carries the password hash"""
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


def _validate_blood_group(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in BLOOD_GROUPS:
        raise ValueError(f"Blood group must be one of {', '.join(BLOOD_GROUPS)}")
    return value


class ProfileFields(CamelModel):
    """Contact and role fields shared by registration and profile edits"""
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    # doctor
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)
    experience: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0)
    # patient
    blood_group: Optional[str] = None
    height: Optional[float] = Field(None, gt=0)
    weight: Optional[float] = Field(None, gt=0)
    emergency_contact: Optional[Dict[str, Any]] = None

    @field_validator("blood_group")
    @classmethod
    def check_blood_group(cls, value):
        return _validate_blood_group(value)


class RegisterRequest(ProfileFields):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Optional[UserRole] = UserRole.PATIENT
    license_number: Optional[str] = Field(None, max_length=50)
    availability: Optional[Dict[str, DayAvailability]] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("availability")
    @classmethod
    def check_availability(cls, value: Optional[Dict[str, DayAvailability]]):
        return check_weekly_availability(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(ProfileFields):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    profile_image: Optional[str] = Field(None, max_length=500)


class AuthResponse(ApiResponse):
    token: str
    user: UserPublic


class UserEnvelope(ApiResponse):
    user: UserPublic


class ProfileResponse(ApiResponse):
    user: UserPublic
    # DoctorResponse or PatientResponse; admins have none
    profile: Optional[Union[DoctorResponse, PatientResponse]] = None
