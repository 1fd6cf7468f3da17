from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_doctor, get_current_patient, get_current_user, require_roles
from clinic.api.v1.appointments.schemas import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatsResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from clinic.api.v1.doctors.schemas import AvailableSlotsResponse
from clinic.api.v1.schemas import ApiResponse, page_meta, page_offset
from clinic.core.config import settings
from clinic.core.exceptions import ValidationError
from clinic.domain.appointments.models import AppointmentStatus
from clinic.domain.appointments.service import AppointmentService
from clinic.domain.auth.models import User, UserRole
from clinic.domain.doctors.models import Doctor
from clinic.domain.patients.models import Patient
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def parse_date_param(value: Optional[str]) -> date:
    """Parse a required ``date`` query parameter (YYYY-MM-DD)"""
    if not value:
        raise ValidationError("Date parameter is required")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError("Date must be formatted as YYYY-MM-DD", details={"date": value})


def _list_response(appointments, total: int, page: int, limit: int) -> dict:
    return {
        "appointments": [AppointmentResponse.model_validate(a) for a in appointments],
        **page_meta(total, page, limit),
    }


@router.post("", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_in: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Book an appointment slot"""
    service = AppointmentService(db)
    appointment = await service.create_appointment(current_user, appointment_in.model_dump())
    return {
        "message": "Appointment created successfully",
        "appointment": AppointmentResponse.model_validate(appointment),
    }


@router.get("/patient", response_model=AppointmentListResponse)
async def list_my_patient_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    upcoming: bool = False,
    patient: Patient = Depends(get_current_patient),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Appointments of the logged-in patient"""
    service = AppointmentService(db)
    appointments, total = await service.list_for_patient(
        current_user, patient.id, skip=page_offset(page, limit), limit=limit,
        status=status_filter, upcoming=upcoming
    )
    return _list_response(appointments, total, page, limit)


@router.get("/doctor", response_model=AppointmentListResponse)
async def list_my_doctor_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    doctor: Doctor = Depends(get_current_doctor),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Appointments of the logged-in doctor"""
    service = AppointmentService(db)
    appointments, total = await service.list_for_doctor(
        current_user, doctor.id, skip=page_offset(page, limit), limit=limit,
        status=status_filter, on_date=on_date
    )
    return _list_response(appointments, total, page, limit)


@router.get("/stats/overview", response_model=AppointmentStatsResponse)
async def get_appointment_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    return {"stats": await service.get_overview_stats(current_user)}


@router.get("/patient/{patient_id}", response_model=AppointmentListResponse)
async def list_patient_appointments(
    patient_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    upcoming: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointments, total = await service.list_for_patient(
        current_user, patient_id, skip=page_offset(page, limit), limit=limit,
        status=status_filter, upcoming=upcoming
    )
    return _list_response(appointments, total, page, limit)


@router.get("/doctor/{doctor_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: str,
    date_param: Optional[str] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Free half-hour start times for a doctor on a date"""
    target_date = parse_date_param(date_param)
    service = AppointmentService(db)
    return {"available_slots": await service.get_available_slots(doctor_id, target_date)}


@router.get("/doctor/{doctor_id}", response_model=AppointmentListResponse)
async def list_doctor_appointments(
    doctor_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(require_roles(UserRole.DOCTOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointments, total = await service.list_for_doctor(
        current_user, doctor_id, skip=page_offset(page, limit), limit=limit,
        status=status_filter, on_date=on_date
    )
    return _list_response(appointments, total, page, limit)


@router.get("/{appointment_id}", response_model=AppointmentEnvelope)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.get_appointment(current_user, appointment_id)
    return {"appointment": AppointmentResponse.model_validate(appointment)}


@router.put("/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment(
    appointment_id: str,
    appointment_in: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Reschedule or edit an appointment"""
    service = AppointmentService(db)
    appointment = await service.update_appointment(
        current_user, appointment_id, appointment_in.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Appointment updated successfully",
        "appointment": AppointmentResponse.model_validate(appointment),
    }


@router.patch("/{appointment_id}/status", response_model=AppointmentEnvelope)
async def update_appointment_status(
    appointment_id: str,
    status_in: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointment = await service.update_status(
        current_user,
        appointment_id,
        status_in.status,
        cancellation_reason=status_in.cancellation_reason,
        cancelled_by=status_in.cancelled_by
    )
    return {
        "message": "Appointment status updated successfully",
        "appointment": AppointmentResponse.model_validate(appointment),
    }


@router.delete("/{appointment_id}", response_model=ApiResponse)
async def delete_appointment(
    appointment_id: str,
    current_user: User = Depends(require_roles(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    await service.delete_appointment(current_user, appointment_id)
    return {"message": "Appointment deleted successfully"}
