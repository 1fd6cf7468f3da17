from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload

from clinic.domain.doctors.models import Doctor
from clinic.infrastructure.database import fetch_page


class DoctorRepository:
    """Repository for doctor profile operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self):
        return (
            select(Doctor)
            .options(selectinload(Doctor.user))
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, doctor_id: str) -> Optional[Doctor]:
        """Get doctor by ID with the user populated"""
        result = await self.db.execute(self._base_query().where(Doctor.id == doctor_id))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Optional[Doctor]:
        result = await self.db.execute(self._base_query().where(Doctor.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_doctors(
        self,
        skip: int = 0,
        limit: int = 10,
        specialization: Optional[str] = None,
        search: Optional[str] = None
    ) -> Tuple[List[Doctor], int]:
        """Active doctors, best rated and most experienced first"""
        query = select(Doctor).where(Doctor.is_active.is_(True))

        if specialization:
            query = query.where(Doctor.specialization.ilike(f"%{specialization}%"))

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Doctor.specialization.ilike(pattern),
                    Doctor.bio.ilike(pattern)
                )
            )

        query = query.order_by(Doctor.rating.desc(), Doctor.experience.desc())
        return await fetch_page(self.db, query, skip, limit, selectinload(Doctor.user))

    async def list_specializations(self) -> List[str]:
        result = await self.db.execute(
            select(Doctor.specialization)
            .where(Doctor.is_active.is_(True))
            .distinct()
            .order_by(Doctor.specialization)
        )
        return list(result.scalars().all())

    async def update(self, doctor: Doctor, update_data: Dict[str, Any]) -> Doctor:
        """Update doctor profile fields"""
        for key, value in update_data.items():
            if hasattr(doctor, key):
                setattr(doctor, key, value)
        await self.db.commit()
        return await self.get_by_id(doctor.id)
