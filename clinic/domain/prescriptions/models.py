from sqlalchemy import Column, String, ForeignKey, Text, JSON, DateTime, Date, Boolean, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from clinic.infrastructure.database import Base, gen_uuid, enum_values


class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    prescription_number = Column(String(64), unique=True, nullable=False)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    doctor_id = Column(String(36), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)

    prescription_date = Column(DateTime, default=datetime.utcnow)
    diagnosis = Column(Text, nullable=False)
    symptoms = Column(JSON, default=list)
    # Ordered list of {name, dosage, frequency, duration, instructions, quantity}
    medications = Column(JSON, default=list)
    instructions = Column(Text)
    follow_up_date = Column(Date)
    status = Column(
        Enum(PrescriptionStatus, values_callable=enum_values, native_enum=False, length=20),
        default=PrescriptionStatus.ACTIVE,
        nullable=False,
    )
    notes = Column(Text)
    is_digital = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = relationship("Patient", backref="prescriptions")
    doctor = relationship("Doctor", backref="prescriptions")
