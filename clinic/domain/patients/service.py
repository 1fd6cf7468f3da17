from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import NotFoundError
from clinic.domain.auth.models import User
from clinic.domain.patients.models import Patient
from clinic.domain.patients.repository import PatientRepository


class PatientService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.patient_repo = PatientRepository(db)

    async def get_patient_for_user(self, user: User) -> Patient:
        patient = await self.patient_repo.get_by_user_id(user.id)
        if not patient:
            raise NotFoundError("Patient profile not found")
        return patient

    async def get_patient(self, patient_id: str) -> Patient:
        patient = await self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    async def list_patients(
        self,
        skip: int = 0,
        limit: int = 10,
        search: Optional[str] = None
    ) -> Tuple[List[Patient], int]:
        return await self.patient_repo.list_patients(skip=skip, limit=limit, search=search)
