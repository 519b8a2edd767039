# kartly/services/subscription_gate.py
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.constants import PLAN_DEFAULTS, PlanName, SubscriptionStatus, VendorStatus
from kartly.core.exceptions import CatalogIncomplete, Expired, NoSubscription, VendorSuspended
from kartly.core.logging import logger
from kartly.db.models.subscription import Plan, Subscription
from kartly.db.repositories.catalog_repository import CategoryRepository, MenuItemRepository
from kartly.db.repositories.subscription_repository import PlanRepository, SubscriptionRepository
from kartly.db.repositories.vendor_repository import VendorRepository


class SubscriptionGate:
    """
    Subscription checks and lifecycle.

    ``ensure_active`` and ``ensure_qr_ready`` are read-only preconditions.
    The remaining methods mutate subscriptions and commit.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.vendors = VendorRepository(session)
        self.plans = PlanRepository(session)
        self.subscriptions = SubscriptionRepository(session)

    async def ensure_active(self, vendor_id: str, now: Optional[datetime] = None) -> Subscription:
        """Return the vendor's current subscription or raise the reason it cannot order"""
        vendor = await self.vendors.get(vendor_id)
        if vendor is not None and vendor.status == VendorStatus.SUSPENDED.value:
            raise VendorSuspended()

        subscription = await self.subscriptions.get_current(vendor_id)
        if subscription is None:
            raise NoSubscription()

        # The daily sweep may not have run yet
        if subscription.end_date < (now or datetime.utcnow()):
            raise Expired()

        return subscription

    async def ensure_qr_ready(self, vendor_id: str) -> Subscription:
        """Subscription check plus a minimally usable catalog"""
        subscription = await self.ensure_active(vendor_id)

        if await CategoryRepository(self.session).count_active(vendor_id) == 0:
            raise CatalogIncomplete("Add at least one active category to generate QR.")

        if await MenuItemRepository(self.session).count_available(vendor_id) == 0:
            raise CatalogIncomplete("Add at least one available menu item to generate QR.")

        return subscription

    async def expire_subscriptions(self, now: Optional[datetime] = None) -> int:
        """Flip every ACTIVE/TRIAL subscription past its end date to EXPIRED"""
        count = await self.subscriptions.expire_ended_before(now or datetime.utcnow())
        await self.session.commit()
        logger.info(f"Subscription expiry check complete. Modified {count} records.")
        return count

    async def get_or_create_plan(self, name: PlanName) -> Plan:
        plan = await self.plans.get_by_name(name.value)
        if plan is None:
            logger.info(f"No {name.value} plan found, creating it from defaults")
            plan = await self.plans.create(dict(PLAN_DEFAULTS[name], name=name.value))
        return plan

    async def start_trial(self, vendor_id: str) -> Subscription:
        """Trial subscription granted at registration. The caller commits."""
        plan = await self.get_or_create_plan(PlanName.TRIAL)
        start = datetime.utcnow()
        return await self.subscriptions.create({
            "vendor_id": vendor_id,
            "plan_id": plan.id,
            "start_date": start,
            "end_date": start + timedelta(days=plan.duration_days),
            "status": SubscriptionStatus.TRIAL.value,
        })

    async def renew(
        self,
        vendor_id: str,
        plan_name: PlanName,
        payment_reference: Optional[str] = None,
    ) -> Subscription:
        """
        Start a paid subscription period.

        Unused time on the current subscription is kept: the new period
        starts when the current one ends, or now if it already ended.
        """
        plan = await self.get_or_create_plan(plan_name)
        now = datetime.utcnow()

        current = await self.subscriptions.get_current(vendor_id)
        start = now
        if current is not None:
            if current.end_date > now:
                start = current.end_date
            current.status = SubscriptionStatus.EXPIRED.value

        subscription = await self.subscriptions.create({
            "vendor_id": vendor_id,
            "plan_id": plan.id,
            "start_date": start,
            "end_date": start + timedelta(days=plan.duration_days),
            "status": SubscriptionStatus.ACTIVE.value,
            "payment_reference": payment_reference,
        })
        await self.session.commit()

        logger.info(
            f"Subscription renewed on {plan_name.value} plan until {subscription.end_date.isoformat()}",
            extra={"vendor_id": vendor_id},
        )
        return subscription
