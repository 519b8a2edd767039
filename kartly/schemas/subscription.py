# kartly/schemas/subscription.py
from datetime import datetime
from typing import Optional

from kartly.core.constants import PlanName, SubscriptionStatus
from kartly.schemas.base import CamelModel


class SubscriptionRenew(CamelModel):
    plan: PlanName
    payment_reference: Optional[str] = None


class SubscriptionRead(CamelModel):
    id: str
    vendor_id: str
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    payment_reference: Optional[str] = None
