from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import SALES_ROLES
from pos_backend.schemas.masters.customer_schemas import CustomerCreate, CustomerOut, CustomerListData
from pos_backend.services.masters.customer_service import create_customer, get_customer, list_customers
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=APIResponse[CustomerOut])
async def create_customer_api(
    payload: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Customer created successfully", await create_customer(db, payload, user))


@router.get("", response_model=APIResponse[CustomerListData])
async def list_customers_api(
    search: str | None = Query(None),
    is_member: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    data = await list_customers(db, search=search, is_member=is_member, page=page, page_size=page_size)
    return success_response("Customers fetched successfully", data)


@router.get("/{customer_id}", response_model=APIResponse[CustomerOut])
async def get_customer_api(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Customer fetched successfully", await get_customer(db, customer_id))
