from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_patient, require_roles
from clinic.api.v1.patients.schemas import PatientEnvelope, PatientListResponse, PatientResponse
from clinic.api.v1.schemas import page_meta, page_offset
from clinic.core.config import settings
from clinic.domain.auth.models import User, UserRole
from clinic.domain.patients.models import Patient
from clinic.domain.patients.service import PatientService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/me", response_model=PatientEnvelope)
async def get_my_patient_profile(patient: Patient = Depends(get_current_patient)):
    return {"patient": PatientResponse.model_validate(patient)}


@router.get("", response_model=PatientListResponse)
async def list_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    current_user: User = Depends(require_roles(UserRole.DOCTOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    """Search patients by name or email"""
    service = PatientService(db)
    patients, total = await service.list_patients(
        skip=page_offset(page, limit), limit=limit, search=search
    )
    return {
        "patients": [PatientResponse.model_validate(p) for p in patients],
        **page_meta(total, page, limit),
    }
