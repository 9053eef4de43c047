from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.inventory import TransferStatus
from pos_backend.constants.roles import STOCK_ROLES
from pos_backend.schemas.inventory.stock_transfer_schemas import (
    StockTransferCreate,
    StockTransferListData,
    StockTransferOut,
)
from pos_backend.services.inventory.stock_transfer_service import (
    cancel_stock_transfer,
    create_stock_transfer,
    execute_stock_transfer,
    get_stock_transfer,
    list_stock_transfers,
)
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/stock-transfers", tags=["Stock Transfers"])


@router.post("", response_model=APIResponse[StockTransferOut])
async def create_stock_transfer_api(
    payload: StockTransferCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Stock transfer created", await create_stock_transfer(db, payload, user))


@router.post("/{transfer_id}/execute", response_model=APIResponse[StockTransferOut])
async def execute_stock_transfer_api(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Stock transfer executed", await execute_stock_transfer(db, transfer_id, user))


@router.post("/{transfer_id}/cancel", response_model=APIResponse[StockTransferOut])
async def cancel_stock_transfer_api(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Stock transfer cancelled", await cancel_stock_transfer(db, transfer_id, user))


@router.get("/{transfer_id}", response_model=APIResponse[StockTransferOut])
async def get_stock_transfer_api(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Stock transfer fetched", await get_stock_transfer(db, transfer_id))


@router.get("", response_model=APIResponse[StockTransferListData])
async def list_stock_transfers_api(
    status: TransferStatus | None = Query(None),
    warehouse_id: int | None = Query(None),
    store_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await list_stock_transfers(
        db,
        status=status,
        warehouse_id=warehouse_id,
        store_id=store_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Stock transfers fetched", data)
