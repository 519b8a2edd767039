# kartly/workers/maintenance_worker.py
"""Periodic housekeeping: subscription expiry and abandoned checkout cleanup."""
import asyncio

from celery import Task
from celery.schedules import crontab

from kartly.core.logging import logger
from kartly.workers.celery_app import celery_app


class MaintenanceTask(Task):
    """Custom task class for maintenance sweeps"""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"Maintenance task {task_id} failed: {exc}", exc_info=True)


class _NullNotifier:
    # Sweeps never publish; they only touch INITIATED orders and subscriptions
    async def publish_new_order(self, vendor_id, order):
        return None

    async def publish_order_status_changed(self, order_id, vendor_id, new_status):
        return None


async def _expire_subscriptions_async() -> int:
    from kartly.db.database import async_session_local, engine
    from kartly.services.subscription_gate import SubscriptionGate

    try:
        async with async_session_local() as session:
            return await SubscriptionGate(session).expire_subscriptions()
    finally:
        # Each asyncio.run gets a fresh loop; pooled connections must not outlive it
        await engine.dispose()


async def _expire_abandoned_orders_async() -> int:
    from kartly.db.database import async_session_local, engine
    from kartly.services.payment_gateway import RazorpayGateway
    from kartly.services.payment_reconciler import PaymentReconciler

    try:
        async with async_session_local() as session:
            reconciler = PaymentReconciler(session, RazorpayGateway(), _NullNotifier())
            return await reconciler.expire_abandoned()
    finally:
        await engine.dispose()


@celery_app.task(bind=True, base=MaintenanceTask, name="expire_subscriptions")
def expire_subscriptions_task(self):
    """Mark ACTIVE/TRIAL subscriptions past their end date as EXPIRED"""
    count = asyncio.run(_expire_subscriptions_async())
    return {"expired": count}


@celery_app.task(bind=True, base=MaintenanceTask, name="expire_abandoned_orders")
def expire_abandoned_orders_task(self):
    """Fail orders whose checkout never completed"""
    count = asyncio.run(_expire_abandoned_orders_async())
    return {"failed": count}


@celery_app.on_after_configure.connect
def setup_maintenance_tasks(sender, **kwargs):
    # Daily at midnight
    sender.add_periodic_task(
        crontab(hour=0, minute=0),
        expire_subscriptions_task.s(),
        name="daily_subscription_expiry",
    )
    sender.add_periodic_task(
        crontab(minute="*/15"),
        expire_abandoned_orders_task.s(),
        name="abandoned_order_sweep",
    )
