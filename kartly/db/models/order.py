# kartly/db/models/order.py
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from kartly.db.base import BaseModel, new_id


class Order(BaseModel):
    """
    Snapshot of a customer purchase.

    payment_status is written only by the payment reconciler and
    order_status only by the vendor status update path.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('INITIATED', 'SUCCESS', 'FAILED')",
            name="orders_payment_status_check"
        ),
        CheckConstraint(
            "order_status IN ('Pending', 'Preparing', 'Ready', 'Completed')",
            name="orders_order_status_check"
        ),
        Index("ix_orders_vendor_created", "vendor_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    token_number = Column(Integer, nullable=False)
    customer_phone = Column(String(32), nullable=True)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), default="INITIATED", nullable=False, index=True)
    order_status = Column(String(20), default="Pending", nullable=False)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    vendor = relationship("Vendor", lazy="joined")


class OrderItem(BaseModel):
    """Line item captured at order time, independent of later menu edits"""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    menu_item_id = Column(String(36), nullable=False)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
