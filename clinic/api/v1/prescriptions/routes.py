from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_doctor, get_current_patient, get_current_user, require_roles
from clinic.api.v1.prescriptions.schemas import (
    PrescriptionCreate,
    PrescriptionEnvelope,
    PrescriptionListResponse,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from clinic.api.v1.schemas import ApiResponse, page_meta, page_offset
from clinic.core.config import settings
from clinic.domain.auth.models import User, UserRole
from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient
from clinic.domain.prescriptions.models import PrescriptionStatus
from clinic.domain.prescriptions.service import PrescriptionService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


def _list_response(prescriptions, total: int, page: int, limit: int) -> dict:
    return {
        "prescriptions": [PrescriptionResponse.model_validate(p) for p in prescriptions],
        **page_meta(total, page, limit),
    }


@router.post("", response_model=PrescriptionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_prescription(
    prescription_in: PrescriptionCreate,
    doctor: Doctor = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db)
):
    """Issue a prescription to a patient"""
    service = PrescriptionService(db)
    prescription = await service.create_prescription(doctor, prescription_in.model_dump())
    return {
        "message": "Prescription created successfully",
        "prescription": PrescriptionResponse.model_validate(prescription),
    }


@router.get("/doctor", response_model=PrescriptionListResponse)
async def list_doctor_prescriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[PrescriptionStatus] = Query(None, alias="status"),
    patient_id: Optional[str] = Query(None, alias="patientId"),
    doctor: Doctor = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db)
):
    service = PrescriptionService(db)
    prescriptions, total = await service.list_for_doctor(
        doctor, skip=page_offset(page, limit), limit=limit,
        status=status_filter, patient_id=patient_id
    )
    return _list_response(prescriptions, total, page, limit)


@router.get("/patient", response_model=PrescriptionListResponse)
async def list_my_prescriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[PrescriptionStatus] = Query(None, alias="status"),
    patient: Patient = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db)
):
    service = PrescriptionService(db)
    prescriptions, total = await service.list_for_patient(
        patient, skip=page_offset(page, limit), limit=limit, status=status_filter
    )
    return _list_response(prescriptions, total, page, limit)


@router.get("/patient/{patient_id}", response_model=PrescriptionListResponse)
async def list_patient_prescriptions(
    patient_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    doctor: Doctor = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db)
):
    """The current doctor's prescriptions for one patient"""
    service = PrescriptionService(db)
    prescriptions, total = await service.list_doctor_patient(
        doctor, patient_id, skip=page_offset(page, limit), limit=limit
    )
    return _list_response(prescriptions, total, page, limit)


@router.get("/{prescription_id}", response_model=PrescriptionEnvelope)
async def get_prescription(
    prescription_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PrescriptionService(db)
    prescription = await service.get_prescription(current_user, prescription_id)
    return {"prescription": PrescriptionResponse.model_validate(prescription)}


@router.put("/{prescription_id}", response_model=PrescriptionEnvelope)
async def update_prescription(
    prescription_id: str,
    prescription_in: PrescriptionUpdate,
    current_user: User = Depends(require_roles(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db)
):
    service = PrescriptionService(db)
    prescription = await service.update_prescription(
        current_user, prescription_id, prescription_in.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Prescription updated successfully",
        "prescription": PrescriptionResponse.model_validate(prescription),
    }


@router.delete("/{prescription_id}", response_model=ApiResponse)
async def delete_prescription(
    prescription_id: str,
    current_user: User = Depends(require_roles(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db)
):
    service = PrescriptionService(db)
    await service.delete_prescription(current_user, prescription_id)
    return {"message": "Prescription deleted successfully"}


@router.get("/{prescription_id}/pdf")
async def download_prescription_pdf(
    prescription_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Prescription as a PDF attachment"""
    service = PrescriptionService(db)
    prescription, content = await service.render_pdf(current_user, prescription_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="prescription-{prescription.prescription_number}.pdf"'
        },
    )


@router.post("/{prescription_id}/send", response_model=ApiResponse)
async def send_prescription(
    prescription_id: str,
    current_user: User = Depends(require_roles(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Notify the patient that the prescription is ready"""
    service = PrescriptionService(db)
    await service.send_to_patient(current_user, prescription_id)
    return {"message": "Prescription sent to patient successfully"}
