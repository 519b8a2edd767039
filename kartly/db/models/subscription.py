# kartly/db/models/subscription.py
from sqlalchemy import Column, String, Integer, Numeric, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from kartly.db.base import BaseModel, new_id


class Plan(BaseModel):
    """Billing tier. Rows are created lazily and never edited once referenced."""
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(20), unique=True, nullable=False)  # TRIAL, BASIC, PREMIUM
    price = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False)
    order_limit = Column(Integer, nullable=True)
    features = Column(JSON, default=dict)


class Subscription(BaseModel):
    """A vendor's entitlement to accept orders between start_date and end_date"""
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=new_id)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    plan_id = Column(String(36), ForeignKey("plans.id"), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default="TRIAL", nullable=False, index=True)  # TRIAL, ACTIVE, EXPIRED, CANCELLED
    payment_reference = Column(String(255), nullable=True)

    # Relationships
    vendor = relationship("Vendor", back_populates="subscriptions")
    plan = relationship("Plan", lazy="joined")
