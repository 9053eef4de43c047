from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import SALES_ROLES
from pos_backend.constants.sales import SaleStatus
from pos_backend.schemas.sales.sale_schemas import SaleCreate, SaleListData, SaleOut, SalesStats
from pos_backend.services.sales.sale_service import create_sale, get_sale, list_sales, sales_stats
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=APIResponse[SaleOut])
async def create_sale_api(
    payload: SaleCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Sale completed successfully", await create_sale(db, payload, user))


@router.get("", response_model=APIResponse[SaleListData])
async def list_sales_api(
    store_id: int | None = Query(None),
    status: SaleStatus | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    data = await list_sales(
        db,
        user,
        store_id=store_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    return success_response("Sales fetched successfully", data)


@router.get("/stats", response_model=APIResponse[SalesStats])
async def sales_stats_api(
    store_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Sales stats fetched successfully", await sales_stats(db, user, store_id=store_id))


@router.get("/{sale_id}", response_model=APIResponse[SaleOut])
async def get_sale_api(
    sale_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(SALES_ROLES)),
):
    return success_response("Sale fetched successfully", await get_sale(db, sale_id, user))
