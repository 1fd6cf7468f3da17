from datetime import datetime
from typing import Optional, List, Dict, Any

from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse, UserSummary


class PatientResponse(CamelModel):
    id: str
    user_id: str
    user: Optional[UserSummary] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    medical_history: List[Any] = []
    allergies: List[Any] = []
    current_medications: List[Any] = []
    insurance: Optional[Dict[str, Any]] = None
    preferred_language: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class PatientBrief(CamelModel):
    """Patient as nested in appointments and prescriptions"""
    id: str
    user: Optional[UserSummary] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    medical_history: List[Any] = []
    current_medications: List[Any] = []


class PatientEnvelope(ApiResponse):
    patient: PatientResponse


class PatientListResponse(PaginatedResponse):
    patients: List[PatientResponse]
