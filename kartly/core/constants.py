# kartly/core/constants.py
from enum import Enum
from typing import Dict, Any, FrozenSet


class VendorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class PlanName(str, Enum):
    TRIAL = "TRIAL"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class SubscriptionStatus(str, Enum):
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment state as seen on the order."""
    INITIATED = "INITIATED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentRecordStatus(str, Enum):
    """Payment state of the gateway intent record."""
    CREATED = "CREATED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    COMPLETED = "Completed"


# Subscriptions that count towards the ordering gate
CURRENT_SUBSCRIPTION_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL)


# Forward-only order workflow. Skipping ahead is allowed, going back is not.
ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.COMPLETED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}


# Plans are created from these defaults the first time they are needed
PLAN_DEFAULTS: Dict[str, Dict[str, Any]] = {
    PlanName.TRIAL: {
        "price": 0,
        "duration_days": 7,
        "order_limit": 100,
        "features": {"support": "basic", "qrcode": True},
    },
    PlanName.BASIC: {
        "price": 499,
        "duration_days": 30,
        "order_limit": 3000,
        "features": {"support": "basic", "qrcode": True},
    },
    PlanName.PREMIUM: {
        "price": 999,
        "duration_days": 30,
        "order_limit": None,  # Unlimited
        "features": {"support": "priority", "qrcode": True, "analytics": True},
    },
}


# Realtime channel names
VENDOR_CHANNEL_PREFIX = "vendor_"
ORDER_CHANNEL_PREFIX = "order_"


def vendor_channel(vendor_id: str) -> str:
    return f"{VENDOR_CHANNEL_PREFIX}{vendor_id}"


def order_channel(order_id: str) -> str:
    return f"{ORDER_CHANNEL_PREFIX}{order_id}"
