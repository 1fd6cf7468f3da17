from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_user, require_roles
from clinic.api.v1.medicines.schemas import (
    CategoryListResponse,
    LowStockResponse,
    MedicineCreate,
    MedicineEnvelope,
    MedicineListResponse,
    MedicineResponse,
    MedicineUpdate,
    StockResponse,
    StockUpdate,
)
from clinic.api.v1.schemas import ApiResponse, page_meta, page_offset
from clinic.core.config import settings
from clinic.domain.auth.models import User, UserRole
from clinic.domain.medicines.models import MedicineCategory
from clinic.domain.medicines.service import MedicineService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/medicines", tags=["Medicines"])

CATALOG_PAGE_SIZE = 12


@router.get("", response_model=MedicineListResponse)
async def list_medicines(
    page: int = Query(1, ge=1),
    limit: int = Query(CATALOG_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    category: Optional[MedicineCategory] = None,
    prescription_required: Optional[bool] = Query(None, alias="prescriptionRequired"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    in_stock: bool = Query(False, alias="inStock"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Browse the medicine store"""
    service = MedicineService(db)
    medicines, total = await service.list_medicines(
        skip=page_offset(page, limit),
        limit=limit,
        search=search,
        category=category,
        prescription_required=prescription_required,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
    )
    return {
        "medicines": [MedicineResponse.model_validate(m) for m in medicines],
        **page_meta(total, page, limit),
    }


@router.get("/categories/list", response_model=CategoryListResponse)
async def list_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    return {"categories": await service.list_categories()}


@router.get("/stock/low", response_model=LowStockResponse)
async def list_low_stock(
    threshold: int = Query(10, ge=0),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    medicines = await service.list_low_stock(threshold)
    return {"medicines": [MedicineResponse.model_validate(m) for m in medicines]}


@router.get("/{medicine_id}", response_model=MedicineEnvelope)
async def get_medicine(
    medicine_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    medicine = await service.get_medicine(medicine_id)
    return {"medicine": MedicineResponse.model_validate(medicine)}


@router.post("", response_model=MedicineEnvelope, status_code=status.HTTP_201_CREATED)
async def create_medicine(
    medicine_in: MedicineCreate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    medicine = await service.create_medicine(medicine_in.model_dump())
    return {
        "message": "Medicine created successfully",
        "medicine": MedicineResponse.model_validate(medicine),
    }


@router.put("/{medicine_id}", response_model=MedicineEnvelope)
async def update_medicine(
    medicine_id: str,
    medicine_in: MedicineUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    medicine = await service.update_medicine(
        medicine_id, medicine_in.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {
        "message": "Medicine updated successfully",
        "medicine": MedicineResponse.model_validate(medicine),
    }


@router.patch("/{medicine_id}/stock", response_model=StockResponse)
async def update_stock(
    medicine_id: str,
    stock_in: StockUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    service = MedicineService(db)
    medicine = await service.set_stock(medicine_id, stock_in.stock_quantity)
    return {"message": "Stock updated successfully", "stock_quantity": medicine.stock_quantity}


@router.delete("/{medicine_id}", response_model=ApiResponse)
async def delete_medicine(
    medicine_id: str,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw a medicine from the store"""
    service = MedicineService(db)
    await service.deactivate_medicine(medicine_id)
    return {"message": "Medicine deleted successfully"}
