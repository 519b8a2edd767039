# kartly/db/repositories/order_repository.py
from typing import Optional, List
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.constants import PaymentStatus
from kartly.db.models.order import Order
from kartly.db.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Repository for Order operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Order, session)

    async def get_by_vendor(
        self,
        vendor_id: str,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        payment_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 200,
    ) -> List[Order]:
        """Orders of one vendor, newest token first"""
        query = select(Order).where(Order.vendor_id == vendor_id)
        if created_from is not None:
            query = query.where(Order.created_at >= created_from)
        if created_to is not None:
            query = query.where(Order.created_at < created_to)
        if payment_status:
            query = query.where(Order.payment_status == payment_status)

        result = await self.session.execute(
            query.order_by(Order.created_at.desc(), Order.token_number.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().unique().all())

    async def get_abandoned(self, created_before: datetime) -> List[Order]:
        """INITIATED orders older than the cutoff"""
        result = await self.session.execute(
            select(Order)
            .where(Order.payment_status == PaymentStatus.INITIATED.value)
            .where(Order.created_at < created_before)
        )
        return list(result.scalars().unique().all())
