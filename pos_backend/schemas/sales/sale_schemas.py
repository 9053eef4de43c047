from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from pos_backend.constants.sales import PaymentMethod


class SaleItemCreate(BaseModel):
    product_id: int
    product_variant_id: Optional[int] = None
    quantity: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class SalePaymentCreate(BaseModel):
    payment_method: PaymentMethod
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    reference_number: Optional[str] = None


class SaleCreate(BaseModel):
    store_id: int
    customer_id: Optional[int] = None
    discount_id: Optional[int] = None
    items: List[SaleItemCreate] = Field(min_length=1)
    payments: List[SalePaymentCreate] = Field(min_length=1)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    loyalty_points_redeemed: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class SaleItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str]
    product_variant_id: Optional[int]
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal
    total_price: Decimal


class SalePaymentOut(BaseModel):
    id: int
    payment_method: str
    amount: Decimal
    reference_number: Optional[str]
    status: str


class SaleOut(BaseModel):
    id: int
    sale_number: str
    store_id: int
    customer_id: Optional[int]
    discount_id: Optional[int]
    cashier_id: int
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    change_amount: Decimal
    loyalty_points_earned: int
    loyalty_points_redeemed: int
    payment_status: str
    sale_status: str
    payment_method: str
    notes: Optional[str]
    sale_date: datetime
    items: List[SaleItemOut]
    payments: List[SalePaymentOut]


class SaleListData(BaseModel):
    total: int
    items: List[SaleOut]


class SalesStats(BaseModel):
    total_sales: int
    total_revenue: Decimal
    today_sales: int
    today_revenue: Decimal
    average_sale: Decimal
