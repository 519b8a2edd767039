# kartly/services/order_ledger.py
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, List, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.config import settings
from kartly.core.constants import ORDER_STATUS_TRANSITIONS, OrderStatus, PaymentStatus
from kartly.core.exceptions import (
    InvalidAmount,
    InvalidItems,
    InvalidStatus,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from kartly.core.logging import logger
from kartly.db.models.order import Order, OrderItem
from kartly.db.repositories.order_repository import OrderRepository
from kartly.services.realtime import Notifier
from kartly.services.token_sequencer import TokenSequencer, current_business_date

# Tolerance for client-computed money fields
AMOUNT_EPSILON = Decimal("0.01")


def _money(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        raise InvalidAmount(f"{field} is not a number")
    if not amount.is_finite():
        raise InvalidAmount(f"{field} is not a number")
    if amount < 0:
        raise InvalidAmount(f"{field} must not be negative")
    return amount


def _item_value(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


class OrderLedger:
    """Creates orders, reads them back, and moves them through the kitchen workflow"""

    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier,
        token_sequencer: Optional[TokenSequencer] = None,
    ):
        self.session = session
        self.notifier = notifier
        self.tokens = token_sequencer or TokenSequencer(session)
        self.orders = OrderRepository(session)

    def _build_items(self, items: Sequence[Any]) -> List[OrderItem]:
        if not items:
            raise InvalidItems()

        lines = []
        for position, item in enumerate(items):
            quantity = _item_value(item, "quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise InvalidItems(f"Item {position + 1} must have a positive whole quantity")

            unit_price = _money(_item_value(item, "unit_price"), "unitPrice")
            total_price = _money(_item_value(item, "total_price"), "totalPrice")
            if abs(total_price - unit_price * quantity) > AMOUNT_EPSILON:
                raise InvalidAmount(f"Item {position + 1} total does not match quantity x unit price")

            lines.append(OrderItem(
                position=position,
                menu_item_id=str(_item_value(item, "menu_item_id")),
                name=_item_value(item, "name"),
                quantity=quantity,
                unit_price=unit_price,
                total_price=total_price,
            ))
        return lines

    async def create_order(
        self,
        vendor_id: str,
        items: Sequence[Any],
        subtotal: Any,
        tax_amount: Any,
        total_amount: Any,
        customer_phone: Optional[str] = None,
    ) -> Order:
        """
        Validate and persist a new order as INITIATED / Pending.

        Amounts are the client's figures; they are checked for consistency,
        not recomputed from the menu. Committed before returning so the
        payment intent can reference it.
        """
        subtotal = _money(subtotal, "subtotal")
        tax_amount = _money(tax_amount, "taxAmount")
        total_amount = _money(total_amount, "totalAmount")

        lines = self._build_items(items)

        if abs(sum((line.total_price for line in lines), Decimal("0")) - subtotal) > AMOUNT_EPSILON:
            raise InvalidAmount("Subtotal does not match the sum of item totals")

        if abs(total_amount - (subtotal + tax_amount)) > AMOUNT_EPSILON:
            raise InvalidAmount("Total amount must equal subtotal plus tax")

        token_number = await self.tokens.next_token(vendor_id, current_business_date())

        order = Order(
            vendor_id=vendor_id,
            token_number=token_number,
            customer_phone=customer_phone,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            payment_status=PaymentStatus.INITIATED.value,
            order_status=OrderStatus.PENDING.value,
            items=lines,
        )
        self.session.add(order)
        await self.session.commit()

        logger.info(
            f"Order created with token {token_number}",
            extra={"vendor_id": vendor_id, "order_id": order.id},
        )
        return order

    async def get_order(self, order_id: str) -> Order:
        """Unscoped lookup; the order id itself is the customer's capability"""
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    async def update_order_status(self, vendor_id: str, order_id: str, new_status: str) -> Order:
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise InvalidStatus(f"Status must be one of: {', '.join(s.value for s in OrderStatus)}")

        # Other tenants' orders are indistinguishable from missing ones
        order = await self.orders.get_for_vendor(order_id, vendor_id)
        if order is None:
            raise NotFound("Order not found")

        current = OrderStatus(order.order_status)
        if (
            settings.STRICT_ORDER_TRANSITIONS
            and status != current
            and status not in ORDER_STATUS_TRANSITIONS[current]
        ):
            raise InvalidTransition(f"Cannot move order from {current.value} to {status.value}")

        order.order_status = status.value
        await self.session.commit()

        logger.info(
            f"Order status changed {current.value} -> {status.value}",
            extra={"vendor_id": vendor_id, "order_id": order_id},
        )
        await self.notifier.publish_order_status_changed(order.id, vendor_id, status.value)
        return order

    async def list_orders(
        self,
        vendor_id: str,
        business_date: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> List[Order]:
        """A vendor's orders for one business day (today by default)"""
        try:
            day = datetime.strptime(business_date or current_business_date(), "%Y-%m-%d").date()
        except ValueError:
            raise ValidationError("Date must be formatted YYYY-MM-DD")
        tz = ZoneInfo(settings.BUSINESS_TIMEZONE)

        # created_at is stored as naive UTC
        start = datetime.combine(day, time.min, tzinfo=tz).astimezone(ZoneInfo("UTC")).replace(tzinfo=None)
        end = start + timedelta(days=1)

        return await self.orders.get_by_vendor(
            vendor_id,
            created_from=start,
            created_to=end,
            payment_status=payment_status,
        )
