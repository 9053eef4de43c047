from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from pos_backend.constants.inventory import LocationKind


class InventoryBalanceOut(BaseModel):
    id: int
    location_type: LocationKind
    location_id: int
    location_name: Optional[str]

    product_id: int
    product_name: Optional[str]
    sku: Optional[str]
    product_variant_id: Optional[int]
    variant_name: Optional[str]

    quantity: Decimal
    reserved_quantity: Decimal
    min_stock: Optional[Decimal]
    max_stock: Optional[Decimal]
    is_low_stock: bool
    is_out_of_stock: bool

    # warehouse only
    zone: Optional[str] = None
    aisle: Optional[str] = None
    level: Optional[str] = None
    bin_location: Optional[str] = None
    # store only
    section: Optional[str] = None
    display_area: Optional[str] = None

    shelf_location: Optional[str]
    last_updated: datetime


class InventoryBalanceListData(BaseModel):
    total: int
    items: List[InventoryBalanceOut]


class WarehouseInventoryUpdate(BaseModel):
    min_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=3)
    max_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=3)
    zone: Optional[str] = None
    aisle: Optional[str] = None
    level: Optional[str] = None
    shelf_location: Optional[str] = None
    bin_location: Optional[str] = None


class StoreInventoryUpdate(BaseModel):
    min_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=3)
    max_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=3)
    section: Optional[str] = None
    display_area: Optional[str] = None
    shelf_location: Optional[str] = None


class LowStockData(BaseModel):
    total: int
    out_of_stock: int
    items: List[InventoryBalanceOut]
