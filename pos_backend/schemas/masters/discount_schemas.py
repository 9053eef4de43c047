from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from pos_backend.constants.sales import DiscountType, DiscountApplicableTo


class DiscountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    min_purchase: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    max_discount: Optional[Decimal] = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    applicable_to: DiscountApplicableTo = DiscountApplicableTo.ALL
    customer_id: Optional[int] = None
    store_id: Optional[int] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)
    usage_per_customer: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class DiscountOut(BaseModel):
    id: int
    name: str
    code: str
    description: Optional[str]
    discount_type: str
    discount_value: Decimal
    min_purchase: Decimal
    max_discount: Optional[Decimal]
    applicable_to: str
    customer_id: Optional[int]
    store_id: Optional[int]
    usage_limit: Optional[int]
    usage_count: int
    usage_per_customer: Optional[int]
    start_date: Optional[date]
    end_date: Optional[date]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]
    created_by_name: Optional[str] = None

    class Config:
        from_attributes = True


class DiscountListData(BaseModel):
    total: int
    items: List[DiscountOut]
