"""
Appointments Service Layer

Business logic for booking, rescheduling, status changes and slot lookup.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, date
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthorizationError, BusinessLogicError, ConflictError, NotFoundError
from clinic.core.permissions import PermissionChecker, is_admin, is_doctor, is_patient
from clinic.domain.appointments.models import (
    Appointment, AppointmentStatus, CancelledBy, ACTIVE_STATUSES
)
from clinic.domain.appointments.repository import AppointmentRepository
from clinic.domain.appointments.slots import available_slots
from clinic.domain.auth.models import User
from clinic.domain.doctors.repository import DoctorRepository
from clinic.domain.patients.repository import PatientRepository

SLOT_TAKEN_MESSAGE = "Time slot is already booked"


def slot_conflict() -> ConflictError:
    return ConflictError(SLOT_TAKEN_MESSAGE, error_code="SLOT_CONFLICT")


class AppointmentService:
    """Service layer for appointment management"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.appointment_repo = AppointmentRepository(db)
        self.doctor_repo = DoctorRepository(db)
        self.patient_repo = PatientRepository(db)

    async def create_appointment(self, current_user: User, data: Dict[str, Any]) -> Appointment:
        """Book a slot.

        Checks run in order: doctor exists, patient exists, the patient is
        the caller, the slot is free. The partial unique index on live
        bookings catches a concurrent booking that slips past the check.
        """
        doctor = await self.doctor_repo.get_by_id(data["doctor_id"])
        if not doctor:
            raise NotFoundError("Doctor not found")

        patient_id = data.get("patient_id")
        if patient_id:
            patient = await self.patient_repo.get_by_id(patient_id)
        else:
            patient = await self.patient_repo.get_by_user_id(current_user.id)
        if not patient:
            raise NotFoundError("Patient not found")

        if patient.user_id != current_user.id:
            raise AuthorizationError("You can only book appointments for yourself")

        existing = await self.appointment_repo.find_active_at(
            doctor.id, data["appointment_date"], data["appointment_time"]
        )
        if existing:
            raise slot_conflict()

        appointment_data = {
            "patient_id": patient.id,
            "doctor_id": doctor.id,
            "appointment_date": data["appointment_date"],
            "appointment_time": data["appointment_time"],
            "reason": data.get("reason") or "General consultation",
            "symptoms": data.get("symptoms") or [],
            "notes": data.get("notes"),
            "is_virtual": bool(data.get("is_virtual")),
            "status": AppointmentStatus.SCHEDULED,
        }
        if data.get("duration"):
            appointment_data["duration"] = data["duration"]
        if data.get("type"):
            appointment_data["type"] = data["type"]

        try:
            appointment = await self.appointment_repo.create(appointment_data)
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                f"Concurrent booking rejected for doctor {doctor.id} at "
                f"{data['appointment_date']} {data['appointment_time']}"
            )
            raise slot_conflict()

        logger.info(
            f"Appointment {appointment.id} booked: patient {patient.id} with doctor {doctor.id} "
            f"on {appointment.appointment_date} at {appointment.appointment_time}"
        )
        return appointment

    async def get_appointment(self, current_user: User, appointment_id: str) -> Appointment:
        appointment = await self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not PermissionChecker.can_view_appointment(current_user, appointment):
            raise AuthorizationError("Access denied")
        return appointment

    async def update_appointment(
        self,
        current_user: User,
        appointment_id: str,
        update_data: Dict[str, Any]
    ) -> Appointment:
        """Edit an appointment; only live bookings may move, and moving re-runs the slot conflict check"""
        appointment = await self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not PermissionChecker.can_edit_appointment(current_user, appointment):
            raise AuthorizationError("Access denied")

        new_date = update_data.get("appointment_date") or appointment.appointment_date
        new_time = update_data.get("appointment_time") or appointment.appointment_time
        moved = (new_date, new_time) != (appointment.appointment_date, appointment.appointment_time)

        if moved and appointment.status not in ACTIVE_STATUSES:
            raise BusinessLogicError(
                "Only scheduled or confirmed appointments can be rescheduled",
                details={"status": appointment.status.value},
            )

        if moved:
            existing = await self.appointment_repo.find_active_at(
                appointment.doctor_id, new_date, new_time, exclude_id=appointment.id
            )
            if existing:
                raise slot_conflict()

        try:
            appointment = await self.appointment_repo.update(appointment, update_data)
        except IntegrityError:
            await self.db.rollback()
            raise slot_conflict()

        logger.info(f"Appointment {appointment.id} updated by user {current_user.id}")
        return appointment

    async def update_status(
        self,
        current_user: User,
        appointment_id: str,
        new_status: AppointmentStatus,
        cancellation_reason: Optional[str] = None,
        cancelled_by: Optional[CancelledBy] = None
    ) -> Appointment:
        """Change status; cancelling records who, why and when, any other status clears that record"""
        appointment = await self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not PermissionChecker.can_set_appointment_status(current_user, appointment, new_status):
            if is_patient(current_user) and PermissionChecker.is_record_patient(current_user, appointment):
                raise AuthorizationError("Patients can only cancel their appointments")
            raise AuthorizationError("Access denied")

        update_data: Dict[str, Any] = {"status": new_status}
        if new_status == AppointmentStatus.CANCELLED:
            update_data.update({
                "cancellation_reason": cancellation_reason,
                "cancelled_by": cancelled_by or CancelledBy(current_user.role.value),
                "cancellation_date": datetime.utcnow(),
            })
        else:
            update_data.update({
                "cancellation_reason": None,
                "cancelled_by": None,
                "cancellation_date": None,
            })

        try:
            appointment = await self.appointment_repo.update(appointment, update_data)
        except IntegrityError:
            # Reactivating a booking whose slot was taken meanwhile
            await self.db.rollback()
            raise slot_conflict()

        logger.info(
            f"Appointment {appointment.id} status set to {new_status.value} by user {current_user.id}"
        )
        return appointment

    async def delete_appointment(self, current_user: User, appointment_id: str) -> None:
        appointment = await self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not PermissionChecker.is_record_doctor(current_user, appointment):
            raise AuthorizationError("Access denied")

        await self.appointment_repo.delete(appointment)
        logger.info(f"Appointment {appointment_id} deleted by user {current_user.id}")

    async def list_for_patient(
        self,
        current_user: User,
        patient_id: str,
        skip: int = 0,
        limit: int = 10,
        status: Optional[AppointmentStatus] = None,
        upcoming: bool = False
    ) -> Tuple[List[Appointment], int]:
        patient = await self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        if is_patient(current_user) and patient.user_id != current_user.id:
            raise AuthorizationError("Access denied")

        return await self.appointment_repo.list_appointments(
            skip=skip,
            limit=limit,
            patient_id=patient.id,
            status=status,
            upcoming_from=date.today() if upcoming else None
        )

    async def list_for_doctor(
        self,
        current_user: User,
        doctor_id: str,
        skip: int = 0,
        limit: int = 10,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None
    ) -> Tuple[List[Appointment], int]:
        doctor = await self.doctor_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        if not is_admin(current_user) and doctor.user_id != current_user.id:
            raise AuthorizationError("Access denied")

        return await self.appointment_repo.list_appointments(
            skip=skip,
            limit=limit,
            doctor_id=doctor.id,
            status=status,
            on_date=on_date
        )

    async def get_available_slots(self, doctor_id: str, target_date: date) -> List[str]:
        """Free 30-minute start times for a doctor on a date.

        A weekday without availability yields an empty list, not an error.
        """
        doctor = await self.doctor_repo.get_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        booked = await self.appointment_repo.booked_times(doctor.id, target_date)
        return available_slots(doctor.availability, target_date, booked)

    async def get_overview_stats(self, current_user: User) -> Dict[str, int]:
        """Totals scoped to the caller: own bookings for doctors and patients"""
        scope: Dict[str, Any] = {}
        if is_doctor(current_user):
            doctor = await self.doctor_repo.get_by_user_id(current_user.id)
            if not doctor:
                raise NotFoundError("Doctor profile not found")
            scope["doctor_id"] = doctor.id
        elif is_patient(current_user):
            patient = await self.patient_repo.get_by_user_id(current_user.id)
            if not patient:
                raise NotFoundError("Patient profile not found")
            scope["patient_id"] = patient.id

        today = date.today()
        return {
            "total_appointments": await self.appointment_repo.count(**scope),
            "today_appointments": await self.appointment_repo.count(on_date=today, **scope),
            "upcoming_appointments": await self.appointment_repo.count(upcoming_from=today, **scope),
            "completed_appointments": await self.appointment_repo.count(
                status=AppointmentStatus.COMPLETED, **scope
            ),
        }
