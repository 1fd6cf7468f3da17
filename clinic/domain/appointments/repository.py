"""
Appointments Repository Layer

Data access for appointments. Reads populate the patient and doctor
(each with its user) so responses can nest them.
"""

from typing import Optional, List, Tuple, Dict, Any
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.orm import selectinload

from clinic.domain.appointments.models import Appointment, AppointmentStatus, ACTIVE_STATUSES
from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient
from clinic.infrastructure.database import fetch_page


def _populate_options():
    return (
        selectinload(Appointment.patient).selectinload(Patient.user),
        selectinload(Appointment.doctor).selectinload(Doctor.user),
    )


class AppointmentRepository:
    """Repository for appointment operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, appointment_data: Dict[str, Any]) -> Appointment:
        """Insert an appointment.

        Raises ``IntegrityError`` when another live booking already holds
        the same doctor slot.
        """
        appointment = Appointment(**appointment_data)
        self.db.add(appointment)
        await self.db.commit()
        return await self.get_by_id(appointment.id)

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID with patient and doctor populated"""
        result = await self.db.execute(
            select(Appointment)
            .options(*_populate_options())
            .execution_options(populate_existing=True)
            .where(Appointment.id == appointment_id)
        )
        return result.scalar_one_or_none()

    async def find_active_at(
        self,
        doctor_id: str,
        appointment_date: date,
        appointment_time: str,
        exclude_id: Optional[str] = None
    ) -> Optional[Appointment]:
        """The scheduled or confirmed booking holding a doctor slot, if any"""
        query = select(Appointment).where(
            and_(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == appointment_date,
                Appointment.appointment_time == appointment_time,
                Appointment.status.in_(ACTIVE_STATUSES)
            )
        )
        if exclude_id:
            query = query.where(Appointment.id != exclude_id)

        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def booked_times(self, doctor_id: str, appointment_date: date) -> List[str]:
        """Start times of the doctor's live bookings on a date"""
        result = await self.db.execute(
            select(Appointment.appointment_time).where(
                and_(
                    Appointment.doctor_id == doctor_id,
                    Appointment.appointment_date == appointment_date,
                    Appointment.status.in_(ACTIVE_STATUSES)
                )
            )
        )
        return list(result.scalars().all())

    async def list_appointments(
        self,
        skip: int = 0,
        limit: int = 10,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None,
        upcoming_from: Optional[date] = None
    ) -> Tuple[List[Appointment], int]:
        """List appointments in chronological order"""
        query = select(Appointment)

        if patient_id:
            query = query.where(Appointment.patient_id == patient_id)
        if doctor_id:
            query = query.where(Appointment.doctor_id == doctor_id)
        if status:
            query = query.where(Appointment.status == status)
        if on_date:
            query = query.where(Appointment.appointment_date == on_date)
        if upcoming_from:
            query = query.where(
                and_(
                    Appointment.appointment_date >= upcoming_from,
                    Appointment.status.in_(ACTIVE_STATUSES)
                )
            )

        query = query.order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
        return await fetch_page(self.db, query, skip, limit, *_populate_options())

    async def count(
        self,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None,
        upcoming_from: Optional[date] = None
    ) -> int:
        """Count appointments with filters"""
        query = select(func.count(Appointment.id))

        if patient_id:
            query = query.where(Appointment.patient_id == patient_id)
        if doctor_id:
            query = query.where(Appointment.doctor_id == doctor_id)
        if status:
            query = query.where(Appointment.status == status)
        if on_date:
            query = query.where(Appointment.appointment_date == on_date)
        if upcoming_from:
            query = query.where(
                and_(
                    Appointment.appointment_date >= upcoming_from,
                    Appointment.status.in_(ACTIVE_STATUSES)
                )
            )

        return await self.db.scalar(query) or 0

    async def update(self, appointment: Appointment, update_data: Dict[str, Any]) -> Appointment:
        """Update appointment fields"""
        for key, value in update_data.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        await self.db.commit()
        return await self.get_by_id(appointment.id)

    async def delete(self, appointment: Appointment) -> None:
        await self.db.delete(appointment)
        await self.db.commit()
