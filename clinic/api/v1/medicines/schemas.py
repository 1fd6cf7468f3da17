from datetime import date, datetime
from typing import Optional, List

from pydantic import Field

from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse
from clinic.domain.medicines.models import DosageForm, MedicineCategory


class MedicineBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    generic_name: Optional[str] = Field(None, max_length=255)
    brand: Optional[str] = Field(None, max_length=255)
    category: MedicineCategory
    description: Optional[str] = None
    dosage_form: Optional[DosageForm] = None
    strength: Optional[str] = Field(None, max_length=50)
    price: float = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    prescription_required: bool = False
    side_effects: List[str] = []
    contraindications: List[str] = []
    manufacturer: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = None
    image: Optional[str] = Field(None, max_length=500)
    tags: List[str] = []


class MedicineCreate(MedicineBase):
    pass


class MedicineUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    generic_name: Optional[str] = Field(None, max_length=255)
    brand: Optional[str] = Field(None, max_length=255)
    category: Optional[MedicineCategory] = None
    description: Optional[str] = None
    dosage_form: Optional[DosageForm] = None
    strength: Optional[str] = Field(None, max_length=50)
    price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    prescription_required: Optional[bool] = None
    side_effects: Optional[List[str]] = None
    contraindications: Optional[List[str]] = None
    manufacturer: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = None
    image: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None


class StockUpdate(CamelModel):
    stock_quantity: int = Field(..., ge=0)


class MedicineResponse(MedicineBase):
    id: str
    is_active: bool = True
    is_available: bool = False
    formatted_price: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MedicineEnvelope(ApiResponse):
    medicine: MedicineResponse


class MedicineListResponse(PaginatedResponse):
    medicines: List[MedicineResponse]


class LowStockResponse(ApiResponse):
    medicines: List[MedicineResponse]


class CategoryListResponse(ApiResponse):
    categories: List[MedicineCategory]


class StockResponse(ApiResponse):
    stock_quantity: int
