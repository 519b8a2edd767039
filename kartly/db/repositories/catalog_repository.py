# kartly/db/repositories/catalog_repository.py
from typing import List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.db.models.catalog import Category, MenuItem
from kartly.db.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Category, session)

    async def list_active(self, vendor_id: str) -> List[Category]:
        result = await self.session.execute(
            select(Category)
            .where(Category.vendor_id == vendor_id, Category.is_active.is_(True))
            .order_by(Category.created_at)
        )
        return list(result.scalars().all())

    async def count_active(self, vendor_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Category.id))
            .where(Category.vendor_id == vendor_id, Category.is_active.is_(True))
        )
        return result.scalar() or 0


class MenuItemRepository(BaseRepository[MenuItem]):
    """Repository for MenuItem operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(MenuItem, session)

    async def list_available(self, vendor_id: str) -> List[MenuItem]:
        result = await self.session.execute(
            select(MenuItem)
            .where(MenuItem.vendor_id == vendor_id, MenuItem.is_available.is_(True))
            .order_by(MenuItem.created_at)
        )
        return list(result.scalars().all())

    async def count_available(self, vendor_id: str) -> int:
        result = await self.session.execute(
            select(func.count(MenuItem.id))
            .where(MenuItem.vendor_id == vendor_id, MenuItem.is_available.is_(True))
        )
        return result.scalar() or 0
