from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_user
from clinic.api.v1.auth.schemas import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    UserEnvelope,
    UserPublic,
)
from clinic.api.v1.doctors.schemas import DoctorResponse
from clinic.api.v1.patients.schemas import PatientResponse
from clinic.domain.auth.models import User, UserRole
from clinic.domain.auth.service import AuthenticationService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/auth", tags=["Authentication"])


def serialize_profile(user: User, profile):
    if profile is None:
        return None
    if user.role == UserRole.DOCTOR:
        return DoctorResponse.model_validate(profile)
    return PatientResponse.model_validate(profile)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Create an account and return its access token"""
    auth_service = AuthenticationService(db)
    user, token = await auth_service.register_user(user_in.model_dump(exclude_none=True))
    return {
        "message": "User registered successfully",
        "token": token,
        "user": UserPublic.model_validate(user),
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    auth_service = AuthenticationService(db)
    user, token = await auth_service.authenticate_user(login_data.email, login_data.password)
    return {
        "message": "Login successful",
        "token": token,
        "user": UserPublic.model_validate(user),
    }


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current user with the doctor or patient profile"""
    auth_service = AuthenticationService(db)
    profile = await auth_service.get_profile(current_user)
    return {
        "user": UserPublic.model_validate(current_user),
        "profile": serialize_profile(current_user, profile),
    }


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    profile_in: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    auth_service = AuthenticationService(db)
    user = await auth_service.update_profile(
        current_user, profile_in.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Profile updated successfully",
        "user": UserPublic.model_validate(user),
    }
