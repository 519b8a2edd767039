# kartly/api/v1/admin.py
"""Platform operator endpoints, guarded by the X-Admin-Secret header."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.api.dependencies import get_subscription_gate, require_admin
from kartly.core.constants import VendorStatus
from kartly.core.logging import logger
from kartly.db.database import get_db
from kartly.db.repositories.vendor_repository import VendorRepository
from kartly.schemas.auth import VendorSummary
from kartly.schemas.subscription import SubscriptionRead, SubscriptionRenew
from kartly.services.subscription_gate import SubscriptionGate

router = APIRouter(dependencies=[Depends(require_admin)])


@router.put("/vendors/{vendor_id}/toggle-status", response_model=VendorSummary)
async def toggle_vendor_status(
    vendor_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Suspend an active vendor or reactivate a suspended one"""
    vendor = await VendorRepository(db).get(vendor_id)
    if not vendor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

    if vendor.status == VendorStatus.ACTIVE.value:
        vendor.status = VendorStatus.SUSPENDED.value
    else:
        vendor.status = VendorStatus.ACTIVE.value
    await db.commit()

    logger.info(f"Vendor status set to {vendor.status}", extra={"vendor_id": vendor_id})
    return vendor


@router.post("/vendors/{vendor_id}/subscription", response_model=SubscriptionRead)
async def renew_subscription(
    vendor_id: str,
    request: SubscriptionRenew,
    db: AsyncSession = Depends(get_db),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """Record a paid plan for a vendor"""
    if not await VendorRepository(db).get(vendor_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")

    return await gate.renew(vendor_id, request.plan, request.payment_reference)


@router.post("/subscriptions/expire")
async def expire_subscriptions(
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """Run the expiry sweep now instead of waiting for the nightly job"""
    count = await gate.expire_subscriptions()
    return {"expired": count}
