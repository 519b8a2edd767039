# kartly/db/models/payment.py
from sqlalchemy import Column, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from kartly.db.base import BaseModel, new_id


class Payment(BaseModel):
    """Gateway payment intent paired 1:1 with an order"""
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), unique=True, nullable=False)
    gateway_order_id = Column(String(64), unique=True, nullable=False, index=True)
    gateway_payment_id = Column(String(64), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), default="CREATED", nullable=False, index=True)  # CREATED, SUCCESS, FAILED

    order = relationship("Order", lazy="joined")
