# kartly/db/repositories/payment_repository.py
from typing import Optional, List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.constants import PaymentRecordStatus
from kartly.db.models.payment import Payment
from kartly.db.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    """Repository for Payment operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Payment, session)

    async def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.gateway_order_id == gateway_order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_order_ids(self, order_ids: List[str]) -> List[Payment]:
        if not order_ids:
            return []
        result = await self.session.execute(
            select(Payment).where(Payment.order_id.in_(order_ids))
        )
        return list(result.scalars().unique().all())

    async def transition_unless_succeeded(
        self,
        gateway_order_id: str,
        new_status: PaymentRecordStatus,
        gateway_payment_id: Optional[str],
    ) -> bool:
        """
        Move a payment that has not yet succeeded to ``new_status``.

        Returns False when the payment already reached SUCCESS. The row lock
        taken by the UPDATE makes concurrent deliveries for one gateway order
        resolve to exactly one winner.
        """
        result = await self.session.execute(
            update(Payment)
            .where(
                Payment.gateway_order_id == gateway_order_id,
                Payment.status != PaymentRecordStatus.SUCCESS.value,
            )
            .values(status=new_status.value, gateway_payment_id=gateway_payment_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
