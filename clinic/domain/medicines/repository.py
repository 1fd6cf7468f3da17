from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, cast, String

from clinic.domain.medicines.models import Medicine, MedicineCategory
from clinic.infrastructure.database import fetch_page


class MedicineRepository:
    """Repository for the medicine catalog"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, medicine_data: Dict[str, Any]) -> Medicine:
        medicine = Medicine(**medicine_data)
        self.db.add(medicine)
        await self.db.commit()
        return medicine

    async def get_by_id(self, medicine_id: str) -> Optional[Medicine]:
        result = await self.db.execute(select(Medicine).where(Medicine.id == medicine_id))
        return result.scalar_one_or_none()

    async def list_medicines(
        self,
        skip: int = 0,
        limit: int = 12,
        search: Optional[str] = None,
        category: Optional[MedicineCategory] = None,
        prescription_required: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: bool = False
    ) -> Tuple[List[Medicine], int]:
        """Active medicines ordered by name"""
        query = select(Medicine).where(Medicine.is_active.is_(True))

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Medicine.name.ilike(pattern),
                    Medicine.generic_name.ilike(pattern),
                    Medicine.brand.ilike(pattern),
                    cast(Medicine.category, String).ilike(pattern)
                )
            )
        if category:
            query = query.where(Medicine.category == category)
        if prescription_required is not None:
            query = query.where(Medicine.prescription_required.is_(prescription_required))
        if min_price is not None:
            query = query.where(Medicine.price >= min_price)
        if max_price is not None:
            query = query.where(Medicine.price <= max_price)
        if in_stock:
            query = query.where(Medicine.stock_quantity > 0)

        query = query.order_by(Medicine.name.asc())
        return await fetch_page(self.db, query, skip, limit)

    async def list_categories(self) -> List[MedicineCategory]:
        result = await self.db.execute(
            select(Medicine.category).where(Medicine.is_active.is_(True)).distinct()
        )
        return sorted(result.scalars().all(), key=lambda category: category.value)

    async def list_low_stock(self, threshold: int = 10) -> List[Medicine]:
        """Active medicines at or below ``threshold``, scarcest first"""
        result = await self.db.execute(
            select(Medicine)
            .where(Medicine.is_active.is_(True), Medicine.stock_quantity <= threshold)
            .order_by(Medicine.stock_quantity.asc())
        )
        return list(result.scalars().all())

    async def update(self, medicine: Medicine, update_data: Dict[str, Any]) -> Medicine:
        for key, value in update_data.items():
            if hasattr(medicine, key):
                setattr(medicine, key, value)
        await self.db.commit()
        return medicine
