from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.constants.roles import ADMIN, MANAGER, INVENTORY, CASHIER, STOCK_ROLES
from pos_backend.schemas.inventory.inventory_balance_schemas import (
    InventoryBalanceListData,
    InventoryBalanceOut,
    LowStockData,
    StoreInventoryUpdate,
    WarehouseInventoryUpdate,
)
from pos_backend.schemas.inventory.inventory_transaction_schemas import (
    AdjustInventoryOut,
    AdjustInventoryRequest,
    InventoryTransactionListData,
    InventoryTransactionOut,
)
from pos_backend.services.inventory import inventory_balance_service as balances
from pos_backend.services.inventory.adjustment_service import adjust_inventory
from pos_backend.services.inventory.movement_ledger import list_movements
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/inventory", tags=["Inventory"])

READ_ROLES = [ADMIN, MANAGER, INVENTORY, CASHIER]


# =====================================================
# WAREHOUSE BALANCES
# =====================================================
@router.get("/warehouse", response_model=APIResponse[InventoryBalanceListData])
async def list_warehouse_inventory_api(
    warehouse_id: int | None = Query(None),
    product_id: int | None = Query(None),
    search: str | None = Query(None),
    low_stock: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await balances.list_balances(
        db,
        LocationKind.WAREHOUSE,
        location_id=warehouse_id,
        product_id=product_id,
        search=search,
        low_stock_only=low_stock,
        page=page,
        page_size=page_size,
    )
    return success_response("Warehouse inventory fetched successfully", data)


@router.get("/warehouse/{balance_id}", response_model=APIResponse[InventoryBalanceOut])
async def get_warehouse_inventory_api(
    balance_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await balances.get_balance(db, LocationKind.WAREHOUSE, balance_id)
    return success_response("Warehouse inventory fetched successfully", data)


@router.patch("/warehouse/{balance_id}", response_model=APIResponse[InventoryBalanceOut])
async def update_warehouse_inventory_api(
    balance_id: int,
    payload: WarehouseInventoryUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await balances.update_balance_settings(db, LocationKind.WAREHOUSE, balance_id, payload, user)
    return success_response("Warehouse inventory updated successfully", data)


# =====================================================
# STORE BALANCES
# =====================================================
@router.get("/store", response_model=APIResponse[InventoryBalanceListData])
async def list_store_inventory_api(
    store_id: int | None = Query(None),
    product_id: int | None = Query(None),
    search: str | None = Query(None),
    low_stock: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    data = await balances.list_balances(
        db,
        LocationKind.STORE,
        location_id=store_id,
        product_id=product_id,
        search=search,
        low_stock_only=low_stock,
        page=page,
        page_size=page_size,
    )
    return success_response("Store inventory fetched successfully", data)


@router.get("/store/{balance_id}", response_model=APIResponse[InventoryBalanceOut])
async def get_store_inventory_api(
    balance_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    data = await balances.get_balance(db, LocationKind.STORE, balance_id)
    return success_response("Store inventory fetched successfully", data)


@router.patch("/store/{balance_id}", response_model=APIResponse[InventoryBalanceOut])
async def update_store_inventory_api(
    balance_id: int,
    payload: StoreInventoryUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await balances.update_balance_settings(db, LocationKind.STORE, balance_id, payload, user)
    return success_response("Store inventory updated successfully", data)


# =====================================================
# LOW STOCK / ADJUST / LEDGER
# =====================================================
@router.get("/low-stock", response_model=APIResponse[LowStockData])
async def low_stock_api(
    location_type: LocationKind | None = Query(None),
    location_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(READ_ROLES)),
):
    data = await balances.low_stock_report(db, location_kind=location_type, location_id=location_id)
    return success_response("Low stock items fetched successfully", data)


@router.post("/adjust", response_model=APIResponse[AdjustInventoryOut])
async def adjust_inventory_api(
    payload: AdjustInventoryRequest,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Inventory adjusted successfully", await adjust_inventory(db, payload, user))


@router.get("/transactions", response_model=APIResponse[InventoryTransactionListData])
async def list_transactions_api(
    product_id: int | None = Query(None),
    location_type: LocationKind | None = Query(None),
    location_id: int | None = Query(None),
    transaction_type: MovementKind | None = Query(None),
    reference_type: ReferenceType | None = Query(None),
    reference_id: int | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    result = await list_movements(
        db,
        product_id=product_id,
        location_kind=location_type,
        location_id=location_id,
        transaction_type=transaction_type,
        reference_type=reference_type,
        reference_id=reference_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    data = InventoryTransactionListData(
        total=result["total"],
        page=page,
        page_size=page_size,
        items=[
            InventoryTransactionOut(
                id=t.id,
                product_id=t.product_id,
                product_name=t.product.name if t.product else None,
                product_variant_id=t.product_variant_id,
                location_type=t.location_type,
                location_id=t.location_id,
                transaction_type=t.transaction_type,
                quantity=t.quantity,
                signed_quantity=t.signed_quantity,
                unit_cost=t.unit_cost,
                reference_type=t.reference_type,
                reference_id=t.reference_id,
                notes=t.notes,
                created_by=t.created_by_id,
                created_by_name=t.created_by_username,
                created_at=t.created_at,
            )
            for t in result["items"]
        ],
    )
    return success_response("Inventory transactions fetched successfully", data)
