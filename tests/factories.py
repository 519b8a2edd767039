"""Test doubles and data builders shared across test modules"""

import json
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.config import settings
from kartly.core.constants import PlanName, SubscriptionStatus, VendorStatus
from kartly.core.security import create_access_token, get_password_hash, sign_payload
from kartly.db.base import Base
from kartly.db.database import engine
from kartly.db.models import Category, MenuItem, Subscription, Vendor
from kartly.services.payment_gateway import GatewayError
from kartly.services.subscription_gate import SubscriptionGate


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


class FakeGateway:
    """Stands in for Razorpay; hands out predictable gateway order ids"""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.fail = False

    async def create_order(self, amount_minor_units, currency, receipt, notes=None):
        if self.fail:
            raise GatewayError("gateway unavailable")
        self.calls.append({
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })
        return {"id": f"order_test_{len(self.calls)}", "amount": amount_minor_units, "status": "created"}


class RecordingNotifier:
    """Collects published events instead of pushing them to sockets"""

    def __init__(self):
        self.events: List[tuple] = []

    async def publish_new_order(self, vendor_id, order):
        self.events.append(("new_order", vendor_id, order.id))

    async def publish_order_status_changed(self, order_id, vendor_id, new_status):
        self.events.append(("order_status_update", vendor_id, order_id, new_status))


class RecordingMailer:
    """Captures outgoing password reset emails"""

    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send_password_reset_email(self, email, name, shop_name, reset_url):
        self.sent.append({"email": email, "name": name, "shop_name": shop_name, "reset_url": reset_url})


def webhook_body(event: str, gateway_order_id: str, payment_id: str = "pay_test_1") -> bytes:
    return json.dumps({
        "entity": "event",
        "event": event,
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "order_id": gateway_order_id,
                    "amount": 10500,
                    "currency": "INR",
                    "status": "failed" if event == "payment.failed" else "captured",
                }
            }
        },
    }).encode()


def signed(body: bytes) -> str:
    return sign_payload(body, settings.RAZORPAY_WEBHOOK_SECRET)


def order_items(quantity: int = 2, unit_price: str = "50.00") -> List[Dict[str, Any]]:
    return [{
        "menu_item_id": "item-1",
        "name": "Pani Puri",
        "quantity": quantity,
        "unit_price": unit_price,
        "total_price": f"{float(unit_price) * quantity:.2f}",
    }]


def order_payload(quantity: int = 2, unit_price: str = "50.00", tax: str = "5.00") -> Dict[str, Any]:
    """Camel-cased request body for the public order endpoint"""
    line_total = f"{float(unit_price) * quantity:.2f}"
    return {
        "items": [{
            "menuItemId": "item-1",
            "name": "Pani Puri",
            "quantity": quantity,
            "unitPrice": unit_price,
            "totalPrice": line_total,
        }],
        "subtotal": line_total,
        "taxAmount": tax,
        "totalAmount": f"{float(line_total) + float(tax):.2f}",
    }


async def make_vendor(
    session: AsyncSession,
    email: str = "vendor@example.com",
    subscription: Optional[str] = "active",
    catalog: bool = False,
    status: VendorStatus = VendorStatus.ACTIVE,
) -> Vendor:
    """Create a vendor with an optional subscription ("active", "expired", "trial") and menu"""
    vendor = Vendor(
        name="Test Owner",
        shop_name="Test Stall",
        phone="9999999999",
        email=email,
        password_hash=get_password_hash("password123"),
        status=status.value,
    )
    session.add(vendor)
    await session.flush()

    if subscription:
        plan = await SubscriptionGate(session).get_or_create_plan(PlanName.BASIC)
        now = datetime.utcnow()
        end = now - timedelta(days=1) if subscription == "expired" else now + timedelta(days=30)
        session.add(Subscription(
            vendor_id=vendor.id,
            plan_id=plan.id,
            start_date=now - timedelta(days=31),
            end_date=end,
            status=(SubscriptionStatus.TRIAL if subscription == "trial" else SubscriptionStatus.ACTIVE).value,
        ))

    if catalog:
        category = Category(vendor_id=vendor.id, name="Snacks", is_active=True)
        session.add(category)
        await session.flush()
        session.add(MenuItem(
            vendor_id=vendor.id,
            category_id=category.id,
            name="Pani Puri",
            price=50,
            is_available=True,
        ))

    await session.commit()
    return vendor


def auth_headers_for(vendor_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'vendor_id': vendor_id})}"}
