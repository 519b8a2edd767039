# kartly/api/v1/vendor.py
import io
from typing import List, Optional

import qrcode
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.api.dependencies import get_current_vendor_id, get_order_ledger, get_subscription_gate
from kartly.core.config import settings
from kartly.core.constants import PaymentStatus
from kartly.core.logging import logger
from kartly.db.database import get_db
from kartly.db.repositories.catalog_repository import CategoryRepository, MenuItemRepository
from kartly.schemas.catalog import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
    QRCodeInfo,
)
from kartly.schemas.order import OrderRead, OrderStatusUpdate
from kartly.services.order_ledger import OrderLedger
from kartly.services.subscription_gate import SubscriptionGate

router = APIRouter()


def _qr_path(vendor_id: str) -> str:
    return f"/q/{vendor_id}"


# Catalog

@router.get("/categories", response_model=List[CategoryRead])
async def list_categories(
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    """All of the vendor's categories, including inactive ones"""
    return await CategoryRepository(db).get_multi(limit=500, filters={"vendor_id": vendor_id})


@router.post("/categories", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    category = await CategoryRepository(db).create({
        "vendor_id": vendor_id,
        "name": request.name,
        "is_active": True,
    })
    await db.commit()
    return category


@router.put("/categories/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: str,
    request: CategoryUpdate,
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    repo = CategoryRepository(db)
    category = await repo.get_for_vendor(category_id, vendor_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    await db.commit()
    return category


@router.delete("/categories/{category_id}", response_model=CategoryRead)
async def deactivate_category(
    category_id: str,
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    """Categories are deactivated, never deleted; past orders keep their item names"""
    category = await CategoryRepository(db).get_for_vendor(category_id, vendor_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    category.is_active = False
    await db.commit()
    return category


@router.get("/menu-items", response_model=List[MenuItemRead])
async def list_menu_items(
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    return await MenuItemRepository(db).get_multi(limit=1000, filters={"vendor_id": vendor_id})


@router.post("/menu-items", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    request: MenuItemCreate,
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    if not await CategoryRepository(db).get_for_vendor(request.category_id, vendor_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    item = await MenuItemRepository(db).create(dict(
        request.model_dump(),
        vendor_id=vendor_id,
        is_available=True,
    ))
    await db.commit()
    return item


@router.put("/menu-items/{item_id}", response_model=MenuItemRead)
async def update_menu_item(
    item_id: str,
    request: MenuItemUpdate,
    vendor_id: str = Depends(get_current_vendor_id),
    db: AsyncSession = Depends(get_db)
):
    item = await MenuItemRepository(db).get_for_vendor(item_id, vendor_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")

    changes = request.model_dump(exclude_unset=True)
    if changes.get("category_id") and not await CategoryRepository(db).get_for_vendor(
        changes["category_id"], vendor_id
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    for field, value in changes.items():
        setattr(item, field, value)
    await db.commit()
    return item


# QR code

@router.get("/qr", response_model=QRCodeInfo)
async def get_qr(
    vendor_id: str = Depends(get_current_vendor_id),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """Customer menu path for the vendor's QR code, once the shop can take orders"""
    await gate.ensure_qr_ready(vendor_id)
    return QRCodeInfo(
        qr_path=_qr_path(vendor_id),
        message="QR code ready. Customers can scan it to order.",
    )


@router.get("/qr/image")
async def get_qr_image(
    origin: Optional[str] = Query(None, description="Public origin to encode, e.g. https://shop.example"),
    vendor_id: str = Depends(get_current_vendor_id),
    gate: SubscriptionGate = Depends(get_subscription_gate),
):
    """Printable PNG of the vendor's QR code"""
    await gate.ensure_qr_ready(vendor_id)

    url = f"{(origin or settings.FRONTEND_URL).rstrip('/')}{_qr_path(vendor_id)}"
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")

    logger.info("QR image generated", extra={"vendor_id": vendor_id})
    return Response(content=buffer.getvalue(), media_type="image/png")


# Orders

@router.get("/orders", response_model=List[OrderRead])
async def list_orders(
    payment_status: Optional[PaymentStatus] = Query(None, alias="paymentStatus"),
    date: Optional[str] = Query(None, description="Business date YYYY-MM-DD, defaults to today"),
    vendor_id: str = Depends(get_current_vendor_id),
    ledger: OrderLedger = Depends(get_order_ledger),
):
    """The vendor's orders for one business day, newest first"""
    return await ledger.list_orders(
        vendor_id,
        business_date=date,
        payment_status=payment_status.value if payment_status else None,
    )


@router.put("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    vendor_id: str = Depends(get_current_vendor_id),
    ledger: OrderLedger = Depends(get_order_ledger),
):
    return await ledger.update_order_status(vendor_id, order_id, request.status)
