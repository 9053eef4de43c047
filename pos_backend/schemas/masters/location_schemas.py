from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class LocationCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    address: Optional[str] = None
    phone: Optional[str] = None
    manager_id: Optional[int] = None


class StoreCreate(LocationCreate):
    warehouse_id: Optional[int] = None


class LocationOut(BaseModel):
    id: int
    code: str
    name: str
    address: Optional[str]
    phone: Optional[str]
    manager_id: Optional[int]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StoreOut(LocationOut):
    warehouse_id: Optional[int]


class LocationListData(BaseModel):
    total: int
    items: List[LocationOut]


class StoreListData(BaseModel):
    total: int
    items: List[StoreOut]
