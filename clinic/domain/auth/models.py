"""
Auth Domain Models

User accounts shared by patients, doctors and administrators.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Date, Enum, Text
from datetime import datetime
import enum

from clinic.infrastructure.database import Base, gen_uuid, enum_values


class UserRole(str, enum.Enum):
    """Account role, fixed at registration"""
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=enum_values, native_enum=False, length=20),
        default=UserRole.PATIENT,
        nullable=False,
    )
    phone = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum(Gender, values_callable=enum_values, native_enum=False, length=10), nullable=True)
    address = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
