from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient
from clinic.domain.prescriptions.models import Prescription, PrescriptionStatus
from clinic.infrastructure.database import fetch_page


def _populate_options():
    return (
        selectinload(Prescription.patient).selectinload(Patient.user),
        selectinload(Prescription.doctor).selectinload(Doctor.user),
    )


class PrescriptionRepository:
    """Repository for prescription operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, prescription_data: Dict[str, Any]) -> Prescription:
        prescription = Prescription(**prescription_data)
        self.db.add(prescription)
        await self.db.commit()
        return await self.get_by_id(prescription.id)

    async def get_by_id(self, prescription_id: str) -> Optional[Prescription]:
        """Get prescription by ID with patient and doctor populated"""
        result = await self.db.execute(
            select(Prescription)
            .options(*_populate_options())
            .execution_options(populate_existing=True)
            .where(Prescription.id == prescription_id)
        )
        return result.scalar_one_or_none()

    async def count_all(self) -> int:
        return await self.db.scalar(select(func.count(Prescription.id))) or 0

    async def list_prescriptions(
        self,
        skip: int = 0,
        limit: int = 10,
        doctor_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        status: Optional[PrescriptionStatus] = None
    ) -> Tuple[List[Prescription], int]:
        """Prescriptions newest first"""
        query = select(Prescription)

        if doctor_id:
            query = query.where(Prescription.doctor_id == doctor_id)
        if patient_id:
            query = query.where(Prescription.patient_id == patient_id)
        if status:
            query = query.where(Prescription.status == status)

        query = query.order_by(Prescription.created_at.desc())
        return await fetch_page(self.db, query, skip, limit, *_populate_options())

    async def update(self, prescription: Prescription, update_data: Dict[str, Any]) -> Prescription:
        for key, value in update_data.items():
            if hasattr(prescription, key):
                setattr(prescription, key, value)
        await self.db.commit()
        return await self.get_by_id(prescription.id)

    async def delete(self, prescription: Prescription) -> None:
        await self.db.delete(prescription)
        await self.db.commit()
