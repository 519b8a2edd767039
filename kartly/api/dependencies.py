# kartly/api/dependencies.py
import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.config import settings
from kartly.core.security import vendor_id_from_access_token
from kartly.db.database import get_db
from kartly.services.email_service import EmailService
from kartly.services.order_ledger import OrderLedger
from kartly.services.payment_gateway import PaymentGateway, RazorpayGateway
from kartly.services.payment_reconciler import PaymentReconciler
from kartly.services.realtime import ConnectionManager, RealtimeNotifier
from kartly.services.subscription_gate import SubscriptionGate

security = HTTPBearer(auto_error=False)


async def get_current_vendor_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Vendor id from the bearer access token"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    vendor_id = vendor_id_from_access_token(credentials.credentials)
    if not vendor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )
    return vendor_id


async def require_admin(x_admin_secret: Optional[str] = Header(None)) -> None:
    """Operator endpoints are guarded by a shared secret header"""
    if not settings.ADMIN_SECRET or not x_admin_secret or not hmac.compare_digest(
        x_admin_secret, settings.ADMIN_SECRET
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def get_notifier(manager: ConnectionManager = Depends(get_connection_manager)) -> RealtimeNotifier:
    return RealtimeNotifier(manager)


def get_payment_gateway() -> PaymentGateway:
    return RazorpayGateway()


def get_email_service() -> EmailService:
    return EmailService()


def get_subscription_gate(db: AsyncSession = Depends(get_db)) -> SubscriptionGate:
    return SubscriptionGate(db)


def get_order_ledger(
    db: AsyncSession = Depends(get_db),
    notifier: RealtimeNotifier = Depends(get_notifier),
) -> OrderLedger:
    return OrderLedger(db, notifier)


def get_payment_reconciler(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: RealtimeNotifier = Depends(get_notifier),
) -> PaymentReconciler:
    return PaymentReconciler(db, gateway, notifier)
