from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_doctor, get_current_user
from clinic.api.v1.appointments.routes import parse_date_param
from clinic.api.v1.appointments.schemas import AppointmentListResponse, AppointmentResponse
from clinic.api.v1.doctors.schemas import (
    AvailabilityUpdate,
    AvailableSlotsResponse,
    DoctorEnvelope,
    DoctorListResponse,
    DoctorResponse,
    DoctorStatsResponse,
    SpecializationListResponse,
)
from clinic.api.v1.schemas import page_meta, page_offset
from clinic.core.config import settings
from clinic.domain.appointments.models import AppointmentStatus
from clinic.domain.appointments.service import AppointmentService
from clinic.domain.auth.models import User
from clinic.domain.doctors.models import Doctor
from clinic.domain.doctors.service import DoctorService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("", response_model=DoctorListResponse)
async def list_doctors(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    specialization: Optional[str] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Browse active doctors"""
    service = DoctorService(db)
    doctors, total = await service.list_doctors(
        skip=page_offset(page, limit), limit=limit,
        specialization=specialization, search=search
    )
    return {
        "doctors": [DoctorResponse.model_validate(d) for d in doctors],
        **page_meta(total, page, limit),
    }


@router.get("/me", response_model=DoctorEnvelope)
async def get_my_doctor_profile(doctor: Doctor = Depends(get_current_doctor)):
    return {"doctor": DoctorResponse.model_validate(doctor)}


@router.get("/specializations/list", response_model=SpecializationListResponse)
async def list_specializations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = DoctorService(db)
    return {"specializations": await service.list_specializations()}


@router.get("/{doctor_id}", response_model=DoctorEnvelope)
async def get_doctor(
    doctor_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = DoctorService(db)
    doctor = await service.get_doctor(doctor_id)
    return {"doctor": DoctorResponse.model_validate(doctor)}


@router.get("/{doctor_id}/appointments", response_model=AppointmentListResponse)
async def list_doctor_appointments(
    doctor_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = AppointmentService(db)
    appointments, total = await service.list_for_doctor(
        current_user, doctor_id, skip=page_offset(page, limit), limit=limit,
        status=status_filter, on_date=on_date
    )
    return {
        "appointments": [AppointmentResponse.model_validate(a) for a in appointments],
        **page_meta(total, page, limit),
    }


@router.put("/{doctor_id}/availability", response_model=DoctorEnvelope)
async def update_availability(
    doctor_id: str,
    availability_in: AvailabilityUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Replace a doctor's weekly availability"""
    service = DoctorService(db)
    doctor = await service.update_availability(
        current_user,
        doctor_id,
        {day: window.model_dump() for day, window in availability_in.availability.items()}
    )
    return {
        "message": "Availability updated successfully",
        "doctor": DoctorResponse.model_validate(doctor),
    }


@router.get("/{doctor_id}/stats", response_model=DoctorStatsResponse)
async def get_doctor_stats(
    doctor_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = DoctorService(db)
    return {"stats": await service.get_stats(doctor_id)}


@router.get("/{doctor_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: str,
    date_param: Optional[str] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    target_date = parse_date_param(date_param)
    service = AppointmentService(db)
    return {"available_slots": await service.get_available_slots(doctor_id, target_date)}
