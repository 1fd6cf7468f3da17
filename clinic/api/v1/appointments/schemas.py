from datetime import date, datetime
from typing import Optional, List, Union

from pydantic import Field, field_validator

from clinic.api.v1.doctors.schemas import DoctorBrief
from clinic.api.v1.patients.schemas import PatientBrief
from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse
from clinic.domain.appointments.models import AppointmentStatus, AppointmentType, CancelledBy

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _as_list(value):
    """A single symptom string is accepted as a one-item list"""
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class AppointmentCreate(CamelModel):
    doctor_id: str
    # Defaults to the caller's own patient profile
    patient_id: Optional[str] = None
    appointment_date: date
    appointment_time: str = Field(..., pattern=TIME_PATTERN)
    duration: Optional[int] = Field(None, ge=15, le=120)
    type: Optional[AppointmentType] = None
    reason: Optional[str] = Field(None, max_length=500)
    symptoms: Optional[Union[List[str], str]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    is_virtual: bool = False

    @field_validator("symptoms")
    @classmethod
    def normalize_symptoms(cls, value):
        return _as_list(value)


class AppointmentUpdate(CamelModel):
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    duration: Optional[int] = Field(None, ge=15, le=120)
    type: Optional[AppointmentType] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    symptoms: Optional[Union[List[str], str]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    is_virtual: Optional[bool] = None
    meeting_link: Optional[str] = Field(None, max_length=500)

    @field_validator("symptoms")
    @classmethod
    def normalize_symptoms(cls, value):
        return _as_list(value)


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus
    cancellation_reason: Optional[str] = Field(None, max_length=500)
    cancelled_by: Optional[CancelledBy] = None


class AppointmentResponse(CamelModel):
    id: str
    patient_id: str
    doctor_id: str
    patient: Optional[PatientBrief] = None
    doctor: Optional[DoctorBrief] = None
    appointment_date: date
    appointment_time: str
    end_time: Optional[str] = None
    duration: int = 30
    type: AppointmentType = AppointmentType.CONSULTATION
    status: AppointmentStatus
    reason: str
    symptoms: List[str] = []
    notes: Optional[str] = None
    is_virtual: bool = False
    meeting_link: Optional[str] = None
    reminder_sent: bool = False
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentEnvelope(ApiResponse):
    appointment: AppointmentResponse


class AppointmentListResponse(PaginatedResponse):
    appointments: List[AppointmentResponse]


class AppointmentStats(CamelModel):
    total_appointments: int
    today_appointments: int
    upcoming_appointments: int
    completed_appointments: int


class AppointmentStatsResponse(ApiResponse):
    stats: AppointmentStats
