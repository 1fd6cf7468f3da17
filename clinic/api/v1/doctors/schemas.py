from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import Field, field_validator

from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse, UserSummary
from clinic.domain.appointments.slots import parse_time
from clinic.domain.doctors.models import WEEKDAYS


# A window may end at midnight ("24:00") but never start there
START_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
END_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"


class DayAvailability(CamelModel):
    start: Optional[str] = Field(None, pattern=START_PATTERN)
    end: Optional[str] = Field(None, pattern=END_PATTERN)
    available: bool = False


def check_weekly_availability(value: Optional[Dict[str, DayAvailability]]):
    """Known weekday keys, and start before end on every working day"""
    if value is None:
        return value
    unknown = sorted(set(value) - set(WEEKDAYS))
    if unknown:
        raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
    for day, window in value.items():
        if window.available and (not window.start or not window.end):
            raise ValueError(f"{day}: start and end are required when available")
        if window.start and window.end and parse_time(window.start) >= parse_time(window.end):
            raise ValueError(f"{day}: start must be before end")
    return value


class AvailabilityUpdate(CamelModel):
    availability: Dict[str, DayAvailability]

    @field_validator("availability")
    @classmethod
    def check_weekdays(cls, value: Dict[str, DayAvailability]) -> Dict[str, DayAvailability]:
        return check_weekly_availability(value)


class DoctorResponse(CamelModel):
    id: str
    user_id: str
    user: Optional[UserSummary] = None
    specialization: str
    license_number: str
    experience: int = 0
    education: List[Any] = []
    certifications: List[Any] = []
    languages: List[str] = []
    consultation_fee: float = 0.0
    availability: Dict[str, Any] = {}
    bio: Optional[str] = None
    rating: float = 0.0
    total_reviews: int = 0
    is_verified: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None


class DoctorBrief(CamelModel):
    """Doctor as nested in appointments and prescriptions"""
    id: str
    user: Optional[UserSummary] = None
    specialization: str
    license_number: Optional[str] = None
    consultation_fee: Optional[float] = None


class DoctorEnvelope(ApiResponse):
    doctor: DoctorResponse


class DoctorListResponse(PaginatedResponse):
    doctors: List[DoctorResponse]


class SpecializationListResponse(ApiResponse):
    specializations: List[str]


class DoctorStats(CamelModel):
    total_appointments: int
    completed_appointments: int
    today_appointments: int
    rating: float
    experience: int
    total_reviews: int


class DoctorStatsResponse(ApiResponse):
    stats: DoctorStats


class AvailableSlotsResponse(ApiResponse):
    available_slots: List[str]
