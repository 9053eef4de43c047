from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType


class InventoryTransactionOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str]
    product_variant_id: Optional[int]
    location_type: LocationKind
    location_id: int
    transaction_type: MovementKind
    quantity: Decimal
    signed_quantity: Decimal
    unit_cost: Optional[Decimal]
    reference_type: ReferenceType
    reference_id: Optional[int]
    notes: Optional[str]
    created_by: int
    created_by_name: Optional[str]
    created_at: datetime


class InventoryTransactionListData(BaseModel):
    total: int
    page: int
    page_size: int
    items: List[InventoryTransactionOut]


class AdjustInventoryRequest(BaseModel):
    location_type: LocationKind
    location_id: int
    product_id: int
    product_variant_id: Optional[int] = None
    quantity: Decimal = Field(ge=0, max_digits=14, decimal_places=3, description="New absolute quantity")
    reason: str = Field(max_length=500)


class AdjustInventoryOut(BaseModel):
    transaction_id: int
    location_type: LocationKind
    location_id: int
    product_id: int
    product_variant_id: Optional[int]
    previous_quantity: Decimal
    new_quantity: Decimal
    difference: Decimal
    reason: str
