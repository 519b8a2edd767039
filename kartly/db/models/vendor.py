# kartly/db/models/vendor.py
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from kartly.db.base import BaseModel, new_id


class Vendor(BaseModel):
    """Tenant root: one food stall and its owner credentials"""
    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    name = Column(String(255), nullable=False)
    shop_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # ACTIVE, SUSPENDED
    status = Column(String(20), default="ACTIVE", nullable=False)

    # Relationships
    subscriptions = relationship("Subscription", back_populates="vendor")
    categories = relationship("Category", back_populates="vendor")
