from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_member: bool = False


class CustomerOut(BaseModel):
    id: int
    customer_code: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    is_member: bool
    loyalty_points: int
    total_spent: Decimal
    last_visit: Optional[datetime]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerListData(BaseModel):
    total: int
    items: List[CustomerOut]
