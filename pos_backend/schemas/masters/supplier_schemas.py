from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    tax_number: Optional[str] = None
    payment_terms: Optional[str] = None


class SupplierOut(BaseModel):
    id: int
    supplier_code: str
    name: str
    contact_person: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    tax_number: Optional[str]
    payment_terms: Optional[str]
    is_active: bool

    created_by_name: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class SupplierListData(BaseModel):
    total: int
    items: List[SupplierOut]
