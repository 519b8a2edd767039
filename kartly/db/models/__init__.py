# kartly/db/models/__init__.py
from kartly.db.models.vendor import Vendor
from kartly.db.models.subscription import Plan, Subscription
from kartly.db.models.catalog import Category, MenuItem
from kartly.db.models.token_tracker import TokenTracker
from kartly.db.models.order import Order, OrderItem
from kartly.db.models.payment import Payment

__all__ = [
    "Vendor",
    "Plan",
    "Subscription",
    "Category",
    "MenuItem",
    "TokenTracker",
    "Order",
    "OrderItem",
    "Payment",
]
