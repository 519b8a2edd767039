# kartly/db/models/catalog.py
from sqlalchemy import Column, String, Text, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from kartly.db.base import BaseModel, new_id


class Category(BaseModel):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    vendor = relationship("Vendor", back_populates="categories")


class MenuItem(BaseModel):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_id)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
