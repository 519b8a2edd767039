# kartly/api/v1/public.py
"""Customer-facing endpoints. No authentication: the vendor id comes from the QR code."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.api.dependencies import (
    get_order_ledger,
    get_payment_reconciler,
    get_subscription_gate,
)
from kartly.core.constants import order_channel
from kartly.core.security import create_channel_token
from kartly.db.database import get_db
from kartly.db.repositories.catalog_repository import CategoryRepository, MenuItemRepository
from kartly.db.repositories.vendor_repository import VendorRepository
from kartly.schemas.catalog import CategoryRead, MenuItemRead
from kartly.schemas.order import OrderCreate, OrderCreated, OrderRead, OrderReceipt, ReceiptVendor
from kartly.services.order_ledger import OrderLedger
from kartly.services.payment_reconciler import PaymentReconciler
from kartly.services.subscription_gate import SubscriptionGate

router = APIRouter()


async def _get_vendor_or_404(db: AsyncSession, vendor_id: str):
    vendor = await VendorRepository(db).get(vendor_id)
    if not vendor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vendor not found"
        )
    return vendor


@router.get("/{vendor_id}/categories", response_model=List[CategoryRead])
async def list_public_categories(
    vendor_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Active categories of a vendor's menu"""
    await _get_vendor_or_404(db, vendor_id)
    return await CategoryRepository(db).list_active(vendor_id)


@router.get("/{vendor_id}/menu-items", response_model=List[MenuItemRead])
async def list_public_menu_items(
    vendor_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Available menu items of a vendor"""
    await _get_vendor_or_404(db, vendor_id)
    return await MenuItemRepository(db).list_available(vendor_id)


@router.post("/{vendor_id}/order", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_order(
    vendor_id: str,
    request: OrderCreate,
    gate: SubscriptionGate = Depends(get_subscription_gate),
    ledger: OrderLedger = Depends(get_order_ledger),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """
    Place an order and open its payment.

    The order is committed before the gateway is called; if the gateway
    fails the response is 502 and the order is left for the abandoned sweep.
    """
    await gate.ensure_active(vendor_id)

    order = await ledger.create_order(
        vendor_id=vendor_id,
        items=request.items,
        subtotal=request.subtotal,
        tax_amount=request.tax_amount,
        total_amount=request.total_amount,
        customer_phone=request.customer_phone,
    )
    intent = await reconciler.open_payment_intent(vendor_id, order.id, order.total_amount)

    return OrderCreated(
        order_id=order.id,
        gateway_order_id=intent.gateway_order_id,
        amount_minor_units=intent.amount_minor_units,
        token_number=order.token_number,
        tracking_token=create_channel_token(order_channel(order.id)),
    )


@router.post("/webhook/payments")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """Razorpay webhook. The signature covers the raw body, so it is read unparsed."""
    payload = await request.body()
    outcome = await reconciler.reconcile_webhook(payload, x_razorpay_signature)
    return {"status": "ok", "outcome": outcome.value}


@router.get("/orders/{order_id}", response_model=OrderReceipt)
async def get_receipt(
    order_id: str,
    ledger: OrderLedger = Depends(get_order_ledger),
):
    """Receipt page data, plus a fresh token for tracking the order live"""
    order = await ledger.get_order(order_id)
    return OrderReceipt(
        order=OrderRead.model_validate(order),
        vendor=ReceiptVendor.model_validate(order.vendor),
        tracking_token=create_channel_token(order_channel(order.id)),
    )
