from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from clinic.domain.auth.models import User
from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient


class UserRepository:
    """Repository for user data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_data: Dict[str, Any],
        doctor_data: Optional[Dict[str, Any]] = None,
        patient_data: Optional[Dict[str, Any]] = None
    ) -> User:
        """Create a user together with its role profile in one transaction"""
        user = User(**user_data)
        self.db.add(user)
        await self.db.flush()

        if doctor_data is not None:
            self.db.add(Doctor(user_id=user.id, **doctor_data))
        if patient_data is not None:
            self.db.add(Patient(user_id=user.id, **patient_data))

        await self.db.commit()
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        if not user_id:
            return None
        result = await self.db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def update(self, user: User, update_data: Dict[str, Any]) -> User:
        """Update user fields"""
        for key, value in update_data.items():
            if hasattr(user, key):
                setattr(user, key, value)
        await self.db.commit()
        return user
