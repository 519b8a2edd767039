# kartly/schemas/order.py
from decimal import Decimal
from typing import List, Optional
from datetime import datetime
from pydantic import Field

from kartly.core.constants import OrderStatus, PaymentStatus
from kartly.schemas.base import CamelModel


class OrderItemIn(CamelModel):
    menu_item_id: str
    name: str = Field(..., min_length=1, max_length=255)
    # Range and arithmetic checks live in the ledger so they surface as domain errors
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderCreate(CamelModel):
    items: List[OrderItemIn]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    customer_phone: Optional[str] = Field(None, max_length=32)


class OrderCreated(CamelModel):
    order_id: str
    gateway_order_id: str
    amount_minor_units: int
    token_number: int
    tracking_token: str


class OrderItemRead(CamelModel):
    menu_item_id: str
    name: str
    quantity: int
    unit_price: float
    total_price: float


class OrderRead(CamelModel):
    id: str
    vendor_id: str
    token_number: int
    customer_phone: Optional[str] = None
    items: List[OrderItemRead]
    subtotal: float
    tax_amount: float
    total_amount: float
    payment_status: PaymentStatus
    order_status: OrderStatus
    created_at: datetime


class OrderStatusUpdate(CamelModel):
    # Validated against OrderStatus in the ledger so unknown values map to InvalidStatus
    status: str


class ReceiptVendor(CamelModel):
    shop_name: str
    name: str


class OrderReceipt(CamelModel):
    order: OrderRead
    vendor: ReceiptVendor
    tracking_token: str
