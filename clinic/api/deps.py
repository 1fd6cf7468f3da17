from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthenticationError, InvalidTokenError, NotFoundError
from clinic.core.permissions import check_role
from clinic.core.security import decode_token
from clinic.domain.auth.models import User, UserRole
from clinic.domain.auth.repository import UserRepository
from clinic.domain.doctors.models import Doctor
from clinic.domain.doctors.repository import DoctorRepository
from clinic.domain.patients.models import Patient
from clinic.domain.patients.repository import PatientRepository
from clinic.infrastructure.database import get_db

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user record"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", error_code="TOKEN_REQUIRED")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("Token expired", error_code="TOKEN_EXPIRED")
    except jwt.PyJWTError:
        raise InvalidTokenError("Invalid token")

    if payload.get("token_type") != "access":
        raise InvalidTokenError("Invalid token")

    user_id = payload.get("userId") or payload.get("sub")
    user = await UserRepository(db).get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory restricting a route to the given roles"""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        check_role(current_user, roles)
        return current_user

    return role_checker


async def get_current_doctor(
    current_user: User = Depends(require_roles(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
) -> Doctor:
    doctor = await DoctorRepository(db).get_by_user_id(current_user.id)
    if not doctor:
        raise NotFoundError("Doctor profile not found")
    return doctor


async def get_current_patient(
    current_user: User = Depends(require_roles(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
) -> Patient:
    patient = await PatientRepository(db).get_by_user_id(current_user.id)
    if not patient:
        raise NotFoundError("Patient profile not found")
    return patient
