from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import ADMIN, MANAGER, SALES_ROLES
from pos_backend.schemas.masters.discount_schemas import DiscountCreate, DiscountOut, DiscountListData
from pos_backend.services.masters.discount_service import (
    create_discount,
    deactivate_discount,
    get_discount,
    list_discounts,
)
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/discounts", tags=["Discounts"])


@router.post("", response_model=APIResponse[DiscountOut])
async def create_discount_api(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER])),
):
    return success_response("Discount created successfully", await create_discount(db, payload, user))


@router.get("", response_model=APIResponse[DiscountListData])
async def list_discounts_api(
    search: str | None = Query(None),
    is_active: bool | None = Query(None),
    store_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    data = await list_discounts(
        db,
        search=search,
        is_active=is_active,
        store_id=store_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Discounts fetched successfully", data)


@router.get("/{discount_id}", response_model=APIResponse[DiscountOut])
async def get_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Discount fetched successfully", await get_discount(db, discount_id))


@router.patch("/{discount_id}/deactivate", response_model=APIResponse[DiscountOut])
async def deactivate_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER])),
):
    return success_response("Discount deactivated successfully", await deactivate_discount(db, discount_id, user))
