from sqlalchemy import Column, String, Integer, Float, Text, JSON, Date, Boolean, DateTime, Enum
from datetime import datetime
import enum

from clinic.infrastructure.database import Base, gen_uuid, enum_values


class MedicineCategory(str, enum.Enum):
    ANTIBIOTIC = "antibiotic"
    PAINKILLER = "painkiller"
    VITAMIN = "vitamin"
    SUPPLEMENT = "supplement"
    PRESCRIPTION = "prescription"
    OTC = "otc"
    OTHER = "other"


class DosageForm(str, enum.Enum):
    TABLET = "tablet"
    CAPSULE = "capsule"
    LIQUID = "liquid"
    INJECTION = "injection"
    CREAM = "cream"
    OINTMENT = "ointment"
    DROPS = "drops"
    INHALER = "inhaler"
    OTHER = "other"


class Medicine(Base):
    __tablename__ = "medicines"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    name = Column(String(255), nullable=False, index=True)
    generic_name = Column(String(255))
    brand = Column(String(255))
    category = Column(
        Enum(MedicineCategory, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
    )
    description = Column(Text)
    dosage_form = Column(Enum(DosageForm, values_callable=enum_values, native_enum=False, length=20))
    strength = Column(String(50))
    price = Column(Float, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    prescription_required = Column(Boolean, default=False)
    side_effects = Column(JSON, default=list)
    contraindications = Column(JSON, default=list)
    manufacturer = Column(String(255))
    expiry_date = Column(Date)
    image = Column(String(500))
    is_active = Column(Boolean, default=True)
    tags = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_available(self) -> bool:
        return (self.stock_quantity or 0) > 0

    @property
    def formatted_price(self) -> str:
        return f"${self.price:.2f}"
