from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


# ==============================
# ITEM SCHEMAS
# ==============================
class PurchaseOrderItemCreate(BaseModel):
    product_id: int
    product_variant_id: Optional[int] = None
    quantity_ordered: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    unit_cost: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class PurchaseOrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str]
    product_variant_id: Optional[int]
    quantity_ordered: Decimal
    quantity_received: Decimal
    unit_cost: Decimal
    total_cost: Decimal


# ==============================
# INPUT SCHEMAS
# ==============================
class PurchaseOrderCreate(BaseModel):
    supplier_id: Optional[int] = None
    supplier_name: Optional[str] = None
    supplier_contact: Optional[str] = None
    warehouse_id: int
    expected_date: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[PurchaseOrderItemCreate] = Field(min_length=1)


class ReceiveLine(BaseModel):
    item_id: int
    quantity_received: Decimal = Field(gt=0, max_digits=14, decimal_places=3)


class ReceivePurchaseOrderRequest(BaseModel):
    items: List[ReceiveLine] = Field(min_length=1)
    notes: Optional[str] = None


# ==============================
# OUTPUT SCHEMAS
# ==============================
class PurchaseOrderOut(BaseModel):
    id: int
    purchase_number: str
    supplier_id: Optional[int]
    supplier_name: str
    supplier_contact: Optional[str]
    warehouse_id: int
    status: str
    order_date: datetime
    expected_date: Optional[datetime]
    received_date: Optional[datetime]
    total_amount: Decimal
    notes: Optional[str]

    created_by: Optional[int]
    created_at: datetime

    items: List[PurchaseOrderItemOut]


class PurchaseOrderListData(BaseModel):
    total: int
    items: List[PurchaseOrderOut]
