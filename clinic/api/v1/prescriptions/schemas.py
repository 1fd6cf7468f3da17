from datetime import date, datetime
from typing import Optional, List, Union

from pydantic import AliasChoices, Field, field_validator

from clinic.api.v1.doctors.schemas import DoctorBrief
from clinic.api.v1.patients.schemas import PatientBrief
from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse
from clinic.domain.prescriptions.models import PrescriptionStatus


class MedicationItem(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    duration: str = Field(..., min_length=1, max_length=100)
    instructions: Optional[str] = ""
    quantity: int = Field(1, ge=1)


def _as_list(value):
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class PrescriptionCreate(CamelModel):
    patient_id: str
    diagnosis: str = Field(..., min_length=1, max_length=1000)
    symptoms: Optional[Union[List[str], str]] = None
    medications: List[MedicationItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("medications", "medicines"),
    )
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("symptoms")
    @classmethod
    def normalize_symptoms(cls, value):
        return _as_list(value)


class PrescriptionUpdate(CamelModel):
    diagnosis: Optional[str] = Field(None, min_length=1, max_length=1000)
    symptoms: Optional[Union[List[str], str]] = None
    medications: Optional[List[MedicationItem]] = Field(
        None,
        validation_alias=AliasChoices("medications", "medicines"),
    )
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: Optional[PrescriptionStatus] = None
    notes: Optional[str] = None

    @field_validator("symptoms")
    @classmethod
    def normalize_symptoms(cls, value):
        return _as_list(value)


class PrescriptionResponse(CamelModel):
    id: str
    prescription_number: str
    patient_id: str
    doctor_id: str
    patient: Optional[PatientBrief] = None
    doctor: Optional[DoctorBrief] = None
    prescription_date: Optional[datetime] = None
    diagnosis: str
    symptoms: List[str] = []
    medications: List[MedicationItem] = []
    instructions: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: PrescriptionStatus
    notes: Optional[str] = None
    is_digital: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PrescriptionEnvelope(ApiResponse):
    prescription: PrescriptionResponse


class PrescriptionListResponse(PaginatedResponse):
    prescriptions: List[PrescriptionResponse]
