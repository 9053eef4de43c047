from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.inventory import PurchaseOrderStatus
from pos_backend.constants.roles import STOCK_ROLES
from pos_backend.schemas.inventory.purchase_order_schemas import (
    PurchaseOrderCreate,
    PurchaseOrderListData,
    PurchaseOrderOut,
    ReceivePurchaseOrderRequest,
)
from pos_backend.services.inventory.purchase_order_service import (
    cancel_purchase_order,
    create_purchase_order,
    get_purchase_order,
    list_purchase_orders,
    receive_purchase_order,
)
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


@router.post("", response_model=APIResponse[PurchaseOrderOut])
async def create_purchase_order_api(
    payload: PurchaseOrderCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Purchase order created successfully", await create_purchase_order(db, payload, user))


@router.get("", response_model=APIResponse[PurchaseOrderListData])
async def list_purchase_orders_api(
    status: PurchaseOrderStatus | None = Query(None),
    warehouse_id: int | None = Query(None),
    supplier_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await list_purchase_orders(
        db,
        status=status,
        warehouse_id=warehouse_id,
        supplier_id=supplier_id,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response("Purchase orders fetched successfully", data)


@router.get("/{po_id}", response_model=APIResponse[PurchaseOrderOut])
async def get_purchase_order_api(
    po_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Purchase order fetched successfully", await get_purchase_order(db, po_id))


@router.post("/{po_id}/receive", response_model=APIResponse[PurchaseOrderOut])
async def receive_purchase_order_api(
    po_id: int,
    payload: ReceivePurchaseOrderRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Purchase order received successfully", await receive_purchase_order(db, po_id, payload, user))


@router.post("/{po_id}/cancel", response_model=APIResponse[PurchaseOrderOut])
async def cancel_purchase_order_api(
    po_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Purchase order cancelled successfully", await cancel_purchase_order(db, po_id, user))
