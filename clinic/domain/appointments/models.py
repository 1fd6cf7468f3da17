"""
Appointments Domain Models

Patient bookings against a doctor's half-hour slots.
"""

from sqlalchemy import (
    Column, String, Date, Boolean, DateTime, ForeignKey,
    Integer, Text, Enum, JSON, Index, text
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from clinic.infrastructure.database import Base, gen_uuid, enum_values


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


# Statuses that hold a slot
ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


class AppointmentType(str, enum.Enum):
    """Type of appointment"""
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE = "routine"
    SPECIALIST = "specialist"


class CancelledBy(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


_active_slot_predicate = text("status IN ('scheduled', 'confirmed')")


class Appointment(Base):
    """Appointment model"""
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)

    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # "HH:MM"
    duration = Column(Integer, default=30)
    type = Column(
        Enum(AppointmentType, values_callable=enum_values, native_enum=False, length=20),
        default=AppointmentType.CONSULTATION,
    )
    status = Column(
        Enum(AppointmentStatus, values_callable=enum_values, native_enum=False, length=20),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
    )
    reason = Column(Text, nullable=False)
    symptoms = Column(JSON, default=list)
    notes = Column(Text)

    is_virtual = Column(Boolean, default=False)
    meeting_link = Column(String(500))
    reminder_sent = Column(Boolean, default=False)
    reminder_date = Column(DateTime)

    cancellation_reason = Column(Text)
    cancelled_by = Column(Enum(CancelledBy, values_callable=enum_values, native_enum=False, length=10))
    cancellation_date = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = relationship("Patient", backref="appointments")
    doctor = relationship("Doctor", backref="appointments")

    __table_args__ = (
        Index("ix_appointments_doctor_slot", "doctor_id", "appointment_date", "appointment_time"),
        Index("ix_appointments_patient_date", "patient_id", "appointment_date"),
        # At most one live booking per doctor slot; cancelled rows do not count
        Index(
            "uq_appointments_active_slot",
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            postgresql_where=_active_slot_predicate,
            sqlite_where=_active_slot_predicate,
        ),
    )

    @property
    def end_time(self) -> str:
        hours, minutes = (int(part) for part in self.appointment_time.split(":"))
        total = hours * 60 + minutes + (self.duration or 0)
        return f"{total // 60:02d}:{total % 60:02d}"
