# kartly/schemas/catalog.py
from decimal import Decimal
from typing import Optional
from pydantic import Field

from kartly.schemas.base import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None


class CategoryRead(CamelModel):
    id: str
    vendor_id: str
    name: str
    is_active: bool


class MenuItemCreate(CamelModel):
    category_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    image_url: Optional[str] = None


class MenuItemUpdate(CamelModel):
    category_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    is_available: Optional[bool] = None


class MenuItemRead(CamelModel):
    id: str
    vendor_id: str
    category_id: str
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    is_available: bool


class QRCodeInfo(CamelModel):
    qr_path: str
    message: str
