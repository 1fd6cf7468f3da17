from typing import Optional, List, Dict, Any, Tuple
import time
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from clinic.core.permissions import PermissionChecker
from clinic.domain.auth.models import User
from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient
from clinic.domain.patients.repository import PatientRepository
from clinic.domain.prescriptions.models import Prescription, PrescriptionStatus
from clinic.domain.prescriptions.pdf import render_prescription_pdf
from clinic.domain.prescriptions.repository import PrescriptionRepository
from clinic.infrastructure.notifications import send_notification

EDITABLE_FIELDS = ("diagnosis", "symptoms", "medications", "instructions", "follow_up_date", "status", "notes")


class PrescriptionService:
    """Service layer for issuing and distributing prescriptions"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.prescription_repo = PrescriptionRepository(db)
        self.patient_repo = PatientRepository(db)

    async def _next_number(self) -> str:
        count = await self.prescription_repo.count_all()
        return f"PRES-{int(time.time() * 1000)}-{count + 1}"

    async def create_prescription(self, doctor: Doctor, data: Dict[str, Any]) -> Prescription:
        patient = await self.patient_repo.get_by_id(data["patient_id"])
        if not patient:
            raise NotFoundError("Patient not found")

        prescription_data = {
            "prescription_number": await self._next_number(),
            "doctor_id": doctor.id,
            "patient_id": patient.id,
            "diagnosis": data["diagnosis"],
            "symptoms": data.get("symptoms") or [],
            "medications": data.get("medications") or [],
            "instructions": data.get("instructions"),
            "follow_up_date": data.get("follow_up_date"),
            "notes": data.get("notes"),
            "status": PrescriptionStatus.ACTIVE,
        }

        try:
            prescription = await self.prescription_repo.create(prescription_data)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Prescription number already issued", error_code="PRESCRIPTION_CONFLICT")

        logger.info(
            f"Prescription {prescription.prescription_number} issued by doctor {doctor.id} "
            f"for patient {patient.id}"
        )
        return prescription

    async def _get(self, prescription_id: str) -> Prescription:
        prescription = await self.prescription_repo.get_by_id(prescription_id)
        if not prescription:
            raise NotFoundError("Prescription not found")
        return prescription

    async def get_prescription(self, current_user: User, prescription_id: str) -> Prescription:
        prescription = await self._get(prescription_id)
        if not PermissionChecker.can_view_prescription(current_user, prescription):
            raise AuthorizationError("Access denied")
        return prescription

    async def get_owned_prescription(self, current_user: User, prescription_id: str) -> Prescription:
        """A prescription the current doctor issued"""
        prescription = await self._get(prescription_id)
        if not PermissionChecker.can_manage_prescription(current_user, prescription):
            raise AuthorizationError("Access denied")
        return prescription

    async def list_for_doctor(
        self,
        doctor: Doctor,
        skip: int = 0,
        limit: int = 10,
        status: Optional[PrescriptionStatus] = None,
        patient_id: Optional[str] = None
    ) -> Tuple[List[Prescription], int]:
        return await self.prescription_repo.list_prescriptions(
            skip=skip, limit=limit, doctor_id=doctor.id, patient_id=patient_id, status=status
        )

    async def list_for_patient(
        self,
        patient: Patient,
        skip: int = 0,
        limit: int = 10,
        status: Optional[PrescriptionStatus] = None
    ) -> Tuple[List[Prescription], int]:
        return await self.prescription_repo.list_prescriptions(
            skip=skip, limit=limit, patient_id=patient.id, status=status
        )

    async def list_doctor_patient(
        self,
        doctor: Doctor,
        patient_id: str,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Prescription], int]:
        """The current doctor's prescriptions for one patient"""
        patient = await self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return await self.prescription_repo.list_prescriptions(
            skip=skip, limit=limit, doctor_id=doctor.id, patient_id=patient.id
        )

    async def update_prescription(
        self,
        current_user: User,
        prescription_id: str,
        update_data: Dict[str, Any]
    ) -> Prescription:
        prescription = await self.get_owned_prescription(current_user, prescription_id)
        changes = {key: update_data[key] for key in EDITABLE_FIELDS if key in update_data}
        prescription = await self.prescription_repo.update(prescription, changes)
        logger.info(f"Prescription {prescription.prescription_number} updated")
        return prescription

    async def delete_prescription(self, current_user: User, prescription_id: str) -> None:
        prescription = await self.get_owned_prescription(current_user, prescription_id)
        await self.prescription_repo.delete(prescription)
        logger.info(f"Prescription {prescription.prescription_number} deleted by user {current_user.id}")

    async def render_pdf(self, current_user: User, prescription_id: str) -> Tuple[Prescription, bytes]:
        prescription = await self._get(prescription_id)
        if not PermissionChecker.can_download_prescription(current_user, prescription):
            raise AuthorizationError("Access denied")
        return prescription, render_prescription_pdf(prescription)

    async def send_to_patient(self, current_user: User, prescription_id: str) -> Dict[str, Any]:
        """Email the patient that a prescription is ready"""
        prescription = await self.get_owned_prescription(current_user, prescription_id)
        patient_user = prescription.patient.user
        doctor_user = prescription.doctor.user

        result = await send_notification(
            recipient=patient_user.email,
            subject=f"Your prescription {prescription.prescription_number}",
            body=(
                f"Dear {patient_user.full_name},\n\n"
                f"Dr. {doctor_user.full_name} has issued prescription "
                f"{prescription.prescription_number} for: {prescription.diagnosis}.\n"
                f"It contains {len(prescription.medications or [])} medication(s)."
            ),
            metadata={"prescription_id": prescription.id},
        )
        logger.info(
            f"Prescription {prescription.prescription_number} sent to {patient_user.email}: {result['status']}"
        )
        return result
