from typing import Optional, List, Dict, Any, Tuple
from datetime import date
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthorizationError, NotFoundError
from clinic.core.permissions import PermissionChecker
from clinic.domain.appointments.models import AppointmentStatus
from clinic.domain.appointments.repository import AppointmentRepository
from clinic.domain.auth.models import User
from clinic.domain.doctors.models import Doctor, normalize_availability
from clinic.domain.doctors.repository import DoctorRepository


class DoctorService:
    """Service layer for doctor directory and schedule management"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.doctor_repo = DoctorRepository(db)
        self.appointment_repo = AppointmentRepository(db)

    async def list_doctors(
        self,
        skip: int = 0,
        limit: int = 10,
        specialization: Optional[str] = None,
        search: Optional[str] = None
    ) -> Tuple[List[Doctor], int]:
        return await self.doctor_repo.list_doctors(
            skip=skip, limit=limit, specialization=specialization, search=search
        )

    async def get_doctor(self, doctor_id: str) -> Doctor:
        doctor = await self.doctor_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    async def get_doctor_for_user(self, user: User) -> Doctor:
        doctor = await self.doctor_repo.get_by_user_id(user.id)
        if not doctor:
            raise NotFoundError("Doctor profile not found")
        return doctor

    async def list_specializations(self) -> List[str]:
        return await self.doctor_repo.list_specializations()

    async def update_availability(
        self,
        current_user: User,
        doctor_id: str,
        availability: Dict[str, Dict[str, Any]]
    ) -> Doctor:
        """Replace the weekly schedule; days left out become unavailable"""
        doctor = await self.get_doctor(doctor_id)
        if not PermissionChecker.can_manage_availability(current_user, doctor):
            raise AuthorizationError("You can only update your own availability")

        schedule = normalize_availability(availability)
        doctor = await self.doctor_repo.update(doctor, {"availability": schedule})
        logger.info(f"Availability updated for doctor {doctor.id} by user {current_user.id}")
        return doctor

    async def get_stats(self, doctor_id: str) -> Dict[str, Any]:
        doctor = await self.get_doctor(doctor_id)
        return {
            "total_appointments": await self.appointment_repo.count(doctor_id=doctor.id),
            "completed_appointments": await self.appointment_repo.count(
                doctor_id=doctor.id, status=AppointmentStatus.COMPLETED
            ),
            "today_appointments": await self.appointment_repo.count(
                doctor_id=doctor.id, on_date=date.today()
            ),
            "rating": doctor.rating or 0.0,
            "experience": doctor.experience or 0,
            "total_reviews": doctor.total_reviews or 0,
        }
