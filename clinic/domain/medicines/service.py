from typing import Optional, List, Dict, Any, Tuple
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import NotFoundError
from clinic.domain.medicines.models import Medicine, MedicineCategory
from clinic.domain.medicines.repository import MedicineRepository


class MedicineService:
    """Service layer for the medicine store"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = MedicineRepository(db)

    async def list_medicines(self, skip: int = 0, limit: int = 12, **filters) -> Tuple[List[Medicine], int]:
        return await self.repo.list_medicines(skip=skip, limit=limit, **filters)

    async def get_medicine(self, medicine_id: str) -> Medicine:
        medicine = await self.repo.get_by_id(medicine_id)
        if not medicine:
            raise NotFoundError("Medicine not found")
        return medicine

    async def list_categories(self) -> List[MedicineCategory]:
        return await self.repo.list_categories()

    async def list_low_stock(self, threshold: int = 10) -> List[Medicine]:
        return await self.repo.list_low_stock(threshold)

    async def create_medicine(self, data: Dict[str, Any]) -> Medicine:
        medicine = await self.repo.create(data)
        logger.info(f"Medicine {medicine.id} ({medicine.name}) added with stock {medicine.stock_quantity}")
        return medicine

    async def update_medicine(self, medicine_id: str, data: Dict[str, Any]) -> Medicine:
        medicine = await self.get_medicine(medicine_id)
        medicine = await self.repo.update(medicine, data)
        logger.info(f"Medicine {medicine.id} updated")
        return medicine

    async def set_stock(self, medicine_id: str, stock_quantity: int) -> Medicine:
        medicine = await self.get_medicine(medicine_id)
        previous = medicine.stock_quantity
        medicine = await self.repo.update(medicine, {"stock_quantity": stock_quantity})
        logger.info(f"Stock for medicine {medicine.id} changed {previous} -> {stock_quantity}")
        return medicine

    async def deactivate_medicine(self, medicine_id: str) -> Medicine:
        """Soft delete: the record stays but drops out of the catalog"""
        medicine = await self.get_medicine(medicine_id)
        medicine = await self.repo.update(medicine, {"is_active": False})
        logger.info(f"Medicine {medicine.id} deactivated")
        return medicine
