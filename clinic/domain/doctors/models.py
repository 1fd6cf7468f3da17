from sqlalchemy import Column, String, Integer, Float, ForeignKey, JSON, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from clinic.infrastructure.database import Base, gen_uuid

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def default_availability() -> dict:
    return {day: {"start": None, "end": None, "available": False} for day in WEEKDAYS}


def normalize_availability(availability: dict) -> dict:
    """Full seven-day schedule; days left out become unavailable"""
    schedule = default_availability()
    for day, window in availability.items():
        schedule[day] = {
            "start": window.get("start"),
            "end": window.get("end"),
            "available": bool(window.get("available")),
        }
    return schedule


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    specialization = Column(String(100), nullable=False, index=True)
    license_number = Column(String(50), unique=True, nullable=False)
    experience = Column(Integer, default=0)
    education = Column(JSON, default=list)
    certifications = Column(JSON, default=list)
    languages = Column(JSON, default=list)
    consultation_fee = Column(Float, default=0.0)
    # weekday -> {"start": "HH:MM", "end": "HH:MM", "available": bool}
    availability = Column(JSON, default=default_availability)
    bio = Column(Text)
    rating = Column(Float, default=0.0)
    total_reviews = Column(Integer, default=0)
    is_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", backref="doctor_profile")
