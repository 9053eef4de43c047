from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from pos_backend.constants.inventory import LocationKind


class StockTransferItemCreate(BaseModel):
    product_id: int
    product_variant_id: Optional[int] = None
    quantity: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    notes: Optional[str] = None


class StockTransferCreate(BaseModel):
    from_warehouse_id: Optional[int] = None
    from_store_id: Optional[int] = None
    to_warehouse_id: Optional[int] = None
    to_store_id: Optional[int] = None
    notes: Optional[str] = None
    items: List[StockTransferItemCreate] = Field(min_length=1)


class StockTransferItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str]
    product_variant_id: Optional[int]
    quantity_requested: Decimal
    quantity_shipped: Decimal
    quantity_received: Decimal


class StockTransferOut(BaseModel):
    id: int
    transfer_number: str
    from_location_type: LocationKind
    from_location_id: int
    to_location_type: LocationKind
    to_location_id: int
    status: str
    requested_by: int
    approved_by: Optional[int]
    shipped_at: Optional[datetime]
    received_at: Optional[datetime]
    notes: Optional[str]
    created_at: datetime
    items: List[StockTransferItemOut]


class StockTransferListData(BaseModel):
    total: int
    items: List[StockTransferOut]
