# pos_backend/schemas/masters/product_schemas.py

from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    barcode: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    unit: str = "pcs"
    cost_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    selling_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    min_stock: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=3)
    max_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=3)
    supplier_id: Optional[int] = None
    is_trackable: bool = True


class VariantCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    barcode: Optional[str] = None
    name: str = Field(min_length=1, max_length=255)
    size: Optional[str] = None
    color: Optional[str] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    selling_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)


class VariantOut(BaseModel):
    id: int
    product_id: int
    sku: str
    barcode: Optional[str]
    name: str
    size: Optional[str]
    color: Optional[str]
    cost_price: Optional[Decimal]
    selling_price: Optional[Decimal]
    is_active: bool

    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: int
    sku: str
    barcode: Optional[str]
    name: str
    description: Optional[str]
    category: Optional[str]
    brand: Optional[str]
    unit: str
    cost_price: Decimal
    selling_price: Decimal
    min_stock: Decimal
    max_stock: Optional[Decimal]
    supplier_id: Optional[int]
    is_trackable: bool
    is_active: bool

    variants: List[VariantOut] = []

    created_by: Optional[int]
    created_by_name: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class ProductListData(BaseModel):
    total: int
    items: List[ProductOut]
