# kartly/services/payment_reconciler.py
import json
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional

import pydantic
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.config import settings
from kartly.core.constants import PaymentRecordStatus, PaymentStatus
from kartly.core.exceptions import NotFound, SignatureInvalid, UpstreamFailure
from kartly.core.logging import logger
from kartly.core.security import verify_signature
from kartly.db.repositories.order_repository import OrderRepository
from kartly.db.repositories.payment_repository import PaymentRepository
from kartly.schemas.payment import (
    PaymentCaptured,
    PaymentFailed,
    PaymentIntent,
    parse_webhook_event,
)
from kartly.services.payment_gateway import GatewayError, PaymentGateway
from kartly.services.realtime import Notifier


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


def to_minor_units(amount: Any) -> int:
    """Major currency units to paise/cents, rounding half up"""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentReconciler:
    """
    Owns every write to payment state.

    Opens the gateway intent for a fresh order and folds gateway webhooks
    back into the Payment and Order records.
    """

    def __init__(
        self,
        session: AsyncSession,
        gateway: PaymentGateway,
        notifier: Notifier,
        webhook_secret: Optional[str] = None,
        currency: Optional[str] = None,
    ):
        self.session = session
        self.gateway = gateway
        self.notifier = notifier
        self.webhook_secret = webhook_secret or settings.RAZORPAY_WEBHOOK_SECRET
        self.currency = currency or settings.CURRENCY
        self.payments = PaymentRepository(session)
        self.orders = OrderRepository(session)

    async def open_payment_intent(self, vendor_id: str, order_id: str, amount: Any) -> PaymentIntent:
        """
        Create the gateway order for a persisted order and record it locally.

        On gateway failure the order stays INITIATED without a payment; the
        abandoned-order sweep resolves it later.
        """
        order = await self.orders.get_for_vendor(order_id, vendor_id)
        if order is None:
            raise NotFound("Order not found")

        amount_minor_units = to_minor_units(amount)
        try:
            gateway_order = await self.gateway.create_order(
                amount_minor_units=amount_minor_units,
                currency=self.currency,
                receipt=order_id,
                notes={"vendor_id": vendor_id, "token_number": str(order.token_number)},
            )
        except GatewayError as e:
            logger.error(
                f"Payment intent creation failed: {str(e)}",
                extra={"vendor_id": vendor_id, "order_id": order_id},
            )
            raise UpstreamFailure()

        payment = await self.payments.create({
            "vendor_id": vendor_id,
            "order_id": order_id,
            "gateway_order_id": gateway_order["id"],
            "amount": Decimal(str(amount)),
            "currency": self.currency,
            "status": PaymentRecordStatus.CREATED.value,
        })
        await self.session.commit()

        return PaymentIntent(
            gateway_order_id=payment.gateway_order_id,
            amount_minor_units=amount_minor_units,
        )

    async def reconcile_webhook(self, raw_payload: bytes, signature: Optional[str]) -> WebhookOutcome:
        """
        Verify and apply one gateway webhook.

        The signature is checked over the exact bytes received before the
        body is even parsed. Once verified, nothing here raises for business
        reasons: the gateway retries anything that is not a 2xx.
        """
        if not verify_signature(raw_payload, signature, self.webhook_secret):
            logger.warning("Invalid webhook signature")
            raise SignatureInvalid()

        try:
            envelope = json.loads(raw_payload)
            event = parse_webhook_event(envelope if isinstance(envelope, dict) else {})
        except (ValueError, pydantic.ValidationError) as e:
            logger.warning(f"Ignoring malformed webhook body: {str(e)}")
            return WebhookOutcome.IGNORED

        if isinstance(event, PaymentCaptured):
            return await self._apply_captured(event)
        if isinstance(event, PaymentFailed):
            return await self._apply_failed(event)

        logger.info(f"Ignoring webhook event {event.event or '<none>'}")
        return WebhookOutcome.IGNORED

    async def _apply_captured(self, event: PaymentCaptured) -> WebhookOutcome:
        payment = await self.payments.get_by_gateway_order_id(event.payment.order_id)
        if payment is None:
            logger.warning(f"No payment for gateway order {event.payment.order_id}")
            return WebhookOutcome.IGNORED

        # payment.captured and order.paid both arrive for one checkout, often concurrently
        claimed = await self.payments.transition_unless_succeeded(
            payment.gateway_order_id,
            PaymentRecordStatus.SUCCESS,
            event.payment.id,
        )
        if not claimed:
            await self.session.commit()
            logger.info(
                f"Duplicate {event.event} for gateway order {payment.gateway_order_id}",
                extra={"vendor_id": payment.vendor_id, "order_id": payment.order_id},
            )
            return WebhookOutcome.DUPLICATE

        order = payment.order
        order.payment_status = PaymentStatus.SUCCESS.value
        await self.session.commit()
        await self.session.refresh(payment)

        logger.info(
            f"Payment captured for token {order.token_number}",
            extra={"vendor_id": order.vendor_id, "order_id": order.id},
        )
        await self.notifier.publish_new_order(order.vendor_id, order)
        return WebhookOutcome.PROCESSED

    async def _apply_failed(self, event: PaymentFailed) -> WebhookOutcome:
        payment = await self.payments.get_by_gateway_order_id(event.payment.order_id)
        if payment is None:
            logger.warning(f"No payment for gateway order {event.payment.order_id}")
            return WebhookOutcome.IGNORED

        # Order.payment_status stays INITIATED: the customer may retry the same gateway order
        failed = await self.payments.transition_unless_succeeded(
            payment.gateway_order_id,
            PaymentRecordStatus.FAILED,
            event.payment.id,
        )
        if not failed:
            # A failed attempt reported after a successful one changes nothing
            await self.session.commit()
            return WebhookOutcome.DUPLICATE

        await self.session.commit()
        await self.session.refresh(payment)

        logger.info(
            "Payment attempt failed",
            extra={"vendor_id": payment.vendor_id, "order_id": payment.order_id},
        )
        return WebhookOutcome.PROCESSED

    async def expire_abandoned(self, older_than: Optional[timedelta] = None) -> int:
        """Mark checkouts that never completed as FAILED. Returns the number of orders."""
        cutoff = datetime.utcnow() - (older_than or timedelta(minutes=settings.ABANDONED_ORDER_MINUTES))
        orders = await self.orders.get_abandoned(cutoff)
        if not orders:
            return 0

        payments = await self.payments.get_by_order_ids([o.id for o in orders])
        for payment in payments:
            if payment.status != PaymentRecordStatus.SUCCESS.value:
                payment.status = PaymentRecordStatus.FAILED.value
        for order in orders:
            order.payment_status = PaymentStatus.FAILED.value

        await self.session.commit()
        logger.info(f"Abandoned checkout sweep complete. Failed {len(orders)} orders.")
        return len(orders)
