# kartly/db/repositories/subscription_repository.py
from typing import Optional
from datetime import datetime
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.constants import CURRENT_SUBSCRIPTION_STATUSES, SubscriptionStatus
from kartly.db.models.subscription import Plan, Subscription
from kartly.db.repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Repository for Plan operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Plan, session)

    async def get_by_name(self, name: str) -> Optional[Plan]:
        result = await self.session.execute(
            select(Plan).where(Plan.name == name)
        )
        return result.scalar_one_or_none()


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for Subscription operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Subscription, session)

    async def get_current(self, vendor_id: str) -> Optional[Subscription]:
        """Most recent ACTIVE or TRIAL subscription, regardless of end date"""
        result = await self.session.execute(
            select(Subscription)
            .where(Subscription.vendor_id == vendor_id)
            .where(Subscription.status.in_([s.value for s in CURRENT_SUBSCRIPTION_STATUSES]))
            .order_by(Subscription.end_date.desc(), Subscription.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def expire_ended_before(self, now: datetime) -> int:
        """Bulk-flip ACTIVE/TRIAL subscriptions whose end date has passed"""
        result = await self.session.execute(
            update(Subscription)
            .where(Subscription.end_date < now)
            .where(Subscription.status.in_([s.value for s in CURRENT_SUBSCRIPTION_STATUSES]))
            .values(status=SubscriptionStatus.EXPIRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
