from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload

from clinic.domain.auth.models import User
from clinic.domain.patients.models import Patient
from clinic.infrastructure.database import fetch_page


class PatientRepository:
    """Repository for patient profile operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self):
        return (
            select(Patient)
            .options(selectinload(Patient.user))
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, patient_id: str) -> Optional[Patient]:
        """Get patient by ID with the user populated"""
        result = await self.db.execute(self._base_query().where(Patient.id == patient_id))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Optional[Patient]:
        result = await self.db.execute(self._base_query().where(Patient.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_patients(
        self,
        skip: int = 0,
        limit: int = 10,
        search: Optional[str] = None
    ) -> Tuple[List[Patient], int]:
        """Patients newest first, optionally matched on name or email"""
        query = select(Patient).join(User, Patient.user_id == User.id)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern)
                )
            )

        query = query.order_by(Patient.created_at.desc())
        return await fetch_page(self.db, query, skip, limit, selectinload(Patient.user))

    async def update(self, patient: Patient, update_data: Dict[str, Any]) -> Patient:
        """Update patient profile fields"""
        for key, value in update_data.items():
            if hasattr(patient, key):
                setattr(patient, key, value)
        await self.db.commit()
        return await self.get_by_id(patient.id)
