# tests/test_payment_reconciler.py
"""
Payment reconciliation tests
Tests: payment intents, webhook signatures, capture, replay, failure, abandoned checkouts
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from kartly.core.constants import PaymentRecordStatus, PaymentStatus
from kartly.core.exceptions import NotFound, SignatureInvalid, UpstreamFailure
from kartly.db.database import async_session_local
from kartly.db.models import Order, Payment
from kartly.services.order_ledger import OrderLedger
from kartly.services.payment_reconciler import PaymentReconciler, WebhookOutcome, to_minor_units
from tests.factories import order_items, signed, webhook_body


async def _checkout(db_session, vendor_id, gateway, notifier):
    """Create an order and its payment intent, as the public order endpoint does"""
    order = await OrderLedger(db_session, notifier).create_order(
        vendor_id=vendor_id,
        items=order_items(),
        subtotal="100.00",
        tax_amount="5.50",
        total_amount="105.50",
    )
    reconciler = PaymentReconciler(db_session, gateway, notifier)
    intent = await reconciler.open_payment_intent(vendor_id, order.id, order.total_amount)
    return order, intent, reconciler


async def _payment_for(db_session, order_id) -> Payment:
    result = await db_session.execute(
        select(Payment).where(Payment.order_id == order_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


class TestMinorUnits:
    """Test currency conversion for the gateway"""

    def test_whole_amounts(self):
        assert to_minor_units(Decimal("105.50")) == 10550

    def test_half_rounds_up(self):
        assert to_minor_units("10.005") == 1001

    def test_float_input(self):
        assert to_minor_units(19.99) == 1999


class TestPaymentIntent:
    """Test opening a gateway payment for an order"""

    @pytest.mark.asyncio
    async def test_open_payment_intent(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, _ = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)

        assert intent.gateway_order_id == "order_test_1"
        assert intent.amount_minor_units == 10550
        assert fake_gateway.calls[0]["receipt"] == order.id
        assert fake_gateway.calls[0]["currency"] == "INR"

        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.CREATED.value
        assert payment.gateway_order_id == "order_test_1"
        assert payment.vendor_id == test_vendor.id

    @pytest.mark.asyncio
    async def test_gateway_failure_is_upstream_failure(self, db_session, test_vendor, fake_gateway, notifier):
        fake_gateway.fail = True
        order = await OrderLedger(db_session, notifier).create_order(
            vendor_id=test_vendor.id,
            items=order_items(),
            subtotal="100.00",
            tax_amount="0.00",
            total_amount="100.00",
        )

        with pytest.raises(UpstreamFailure) as exc_info:
            await PaymentReconciler(db_session, fake_gateway, notifier).open_payment_intent(
                test_vendor.id, order.id, order.total_amount
            )

        assert exc_info.value.to_dict()["retryable"] is True
        assert await _payment_for(db_session, order.id) is None
        assert order.payment_status == PaymentStatus.INITIATED.value

    @pytest.mark.asyncio
    async def test_intent_for_unknown_order(self, db_session, test_vendor, fake_gateway, notifier):
        with pytest.raises(NotFound):
            await PaymentReconciler(db_session, fake_gateway, notifier).open_payment_intent(
                test_vendor.id, "missing", Decimal("10")
            )
        assert fake_gateway.calls == []


class TestWebhook:
    """Test webhook verification and reconciliation"""

    @pytest.mark.asyncio
    async def test_captured_marks_order_paid_and_announces(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        body = webhook_body("payment.captured", intent.gateway_order_id, "pay_123")

        outcome = await reconciler.reconcile_webhook(body, signed(body))

        assert outcome == WebhookOutcome.PROCESSED
        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.SUCCESS.value
        assert payment.gateway_payment_id == "pay_123"
        assert payment.order.payment_status == PaymentStatus.SUCCESS.value
        assert notifier.events == [("new_order", test_vendor.id, order.id)]

    @pytest.mark.asyncio
    async def test_replay_is_a_no_op(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        body = webhook_body("payment.captured", intent.gateway_order_id)

        assert await reconciler.reconcile_webhook(body, signed(body)) == WebhookOutcome.PROCESSED
        assert await reconciler.reconcile_webhook(body, signed(body)) == WebhookOutcome.DUPLICATE

        # order.paid follows payment.captured for the same checkout
        paid = webhook_body("order.paid", intent.gateway_order_id)
        assert await reconciler.reconcile_webhook(paid, signed(paid)) == WebhookOutcome.DUPLICATE

        assert len(notifier.events) == 1

    @pytest.mark.asyncio
    async def test_concurrent_capture_deliveries_announce_once(self, db_session, test_vendor, fake_gateway, notifier):
        """payment.captured and order.paid racing in separate requests yield one new_order"""
        order, intent, _ = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)

        async def deliver(event: str) -> WebhookOutcome:
            body = webhook_body(event, intent.gateway_order_id)
            async with async_session_local() as session:
                return await PaymentReconciler(session, fake_gateway, notifier).reconcile_webhook(body, signed(body))

        outcomes = await asyncio.gather(deliver("payment.captured"), deliver("order.paid"))

        assert sorted(outcomes) == [WebhookOutcome.DUPLICATE, WebhookOutcome.PROCESSED]
        assert notifier.events == [("new_order", test_vendor.id, order.id)]
        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.SUCCESS.value

    @pytest.mark.asyncio
    async def test_tampered_body_is_rejected(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        body = webhook_body("payment.captured", intent.gateway_order_id)
        signature = signed(body)
        tampered = body.replace(b'"amount": 10500', b'"amount": 1')

        with pytest.raises(SignatureInvalid):
            await reconciler.reconcile_webhook(tampered, signature)

        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.CREATED.value
        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_missing_signature_is_rejected(self, db_session, fake_gateway, notifier):
        body = webhook_body("payment.captured", "order_x")

        with pytest.raises(SignatureInvalid):
            await PaymentReconciler(db_session, fake_gateway, notifier).reconcile_webhook(body, None)

    @pytest.mark.asyncio
    async def test_signature_must_use_webhook_secret(self, db_session, fake_gateway, notifier):
        from kartly.core.security import sign_payload

        body = webhook_body("payment.captured", "order_x")

        with pytest.raises(SignatureInvalid):
            await PaymentReconciler(db_session, fake_gateway, notifier).reconcile_webhook(
                body, sign_payload(body, "some-other-secret")
            )

    @pytest.mark.asyncio
    async def test_failed_payment_keeps_order_initiated(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        body = webhook_body("payment.failed", intent.gateway_order_id, "pay_fail")

        assert await reconciler.reconcile_webhook(body, signed(body)) == WebhookOutcome.PROCESSED

        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.FAILED.value
        assert payment.order.payment_status == PaymentStatus.INITIATED.value
        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_retry_after_failure_can_succeed(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        failed = webhook_body("payment.failed", intent.gateway_order_id, "pay_1")
        captured = webhook_body("payment.captured", intent.gateway_order_id, "pay_2")

        await reconciler.reconcile_webhook(failed, signed(failed))
        assert await reconciler.reconcile_webhook(captured, signed(captured)) == WebhookOutcome.PROCESSED

        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.SUCCESS.value
        assert payment.gateway_payment_id == "pay_2"

    @pytest.mark.asyncio
    async def test_late_failure_does_not_undo_success(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        captured = webhook_body("payment.captured", intent.gateway_order_id, "pay_ok")
        failed = webhook_body("payment.failed", intent.gateway_order_id, "pay_bad")

        await reconciler.reconcile_webhook(captured, signed(captured))
        await reconciler.reconcile_webhook(failed, signed(failed))

        payment = await _payment_for(db_session, order.id)
        assert payment.status == PaymentRecordStatus.SUCCESS.value
        assert payment.order.payment_status == PaymentStatus.SUCCESS.value

    @pytest.mark.asyncio
    async def test_unknown_event_is_ignored(self, db_session, fake_gateway, notifier):
        body = b'{"event": "refund.created", "payload": {}}'

        outcome = await PaymentReconciler(db_session, fake_gateway, notifier).reconcile_webhook(body, signed(body))

        assert outcome == WebhookOutcome.IGNORED

    @pytest.mark.asyncio
    async def test_unknown_gateway_order_is_ignored(self, db_session, fake_gateway, notifier):
        body = webhook_body("payment.captured", "order_never_issued")

        outcome = await PaymentReconciler(db_session, fake_gateway, notifier).reconcile_webhook(body, signed(body))

        assert outcome == WebhookOutcome.IGNORED
        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_malformed_signed_body_is_ignored(self, db_session, fake_gateway, notifier):
        reconciler = PaymentReconciler(db_session, fake_gateway, notifier)

        bodies = (
            b"not json",
            b"[1, 2]",
            b'{"event": "payment.captured", "payload": {}}',
            b'{"event": "payment.captured", "payload": "x"}',
            b'{"event": "payment.captured", "payload": {"payment": ["x"]}}',
            b'{"event": "payment.failed", "payload": {"payment": {"entity": "x"}}}',
        )
        for body in bodies:
            assert await reconciler.reconcile_webhook(body, signed(body)) == WebhookOutcome.IGNORED


class TestAbandonedCheckouts:
    """Test the sweep that fails orders whose payment never completed"""

    @pytest.mark.asyncio
    async def test_old_initiated_orders_are_failed(self, db_session, test_vendor, fake_gateway, notifier):
        stale, _, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        fresh, _, _ = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        stale.created_at = datetime.utcnow() - timedelta(hours=2)
        await db_session.commit()

        assert await reconciler.expire_abandoned() == 1

        statuses = dict((await db_session.execute(select(Order.id, Order.payment_status))).all())
        assert statuses[stale.id] == PaymentStatus.FAILED.value
        assert statuses[fresh.id] == PaymentStatus.INITIATED.value
        assert (await _payment_for(db_session, stale.id)).status == PaymentRecordStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_paid_orders_are_left_alone(self, db_session, test_vendor, fake_gateway, notifier):
        order, intent, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        body = webhook_body("payment.captured", intent.gateway_order_id)
        await reconciler.reconcile_webhook(body, signed(body))
        order.created_at = datetime.utcnow() - timedelta(hours=2)
        await db_session.commit()

        assert await reconciler.expire_abandoned() == 0

    @pytest.mark.asyncio
    async def test_cutoff_is_configurable(self, db_session, test_vendor, fake_gateway, notifier):
        order, _, reconciler = await _checkout(db_session, test_vendor.id, fake_gateway, notifier)
        order.created_at = datetime.utcnow() - timedelta(minutes=10)
        await db_session.commit()

        assert await reconciler.expire_abandoned(older_than=timedelta(minutes=30)) == 0
        assert await reconciler.expire_abandoned(older_than=timedelta(minutes=5)) == 1
