from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import ADMIN, MANAGER, INVENTORY, CASHIER
from pos_backend.schemas.masters.location_schemas import (
    LocationCreate,
    LocationOut,
    LocationListData,
    StoreCreate,
    StoreOut,
    StoreListData,
)
from pos_backend.services.masters import location_service
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

warehouse_router = APIRouter(prefix="/warehouses", tags=["Warehouses"])
store_router = APIRouter(prefix="/stores", tags=["Stores"])


# ---------------- WAREHOUSES ----------------
@warehouse_router.post("", response_model=APIResponse[LocationOut])
async def create_warehouse_api(
    payload: LocationCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER])),
):
    return success_response(
        "Warehouse created successfully",
        await location_service.create_warehouse(db, payload, user),
    )


@warehouse_router.get("", response_model=APIResponse[LocationListData])
async def list_warehouses_api(
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY])),
):
    data = await location_service.list_warehouses(db, is_active=is_active, page=page, page_size=page_size)
    return success_response("Warehouses fetched successfully", data)


@warehouse_router.get("/{warehouse_id}", response_model=APIResponse[LocationOut])
async def get_warehouse_api(
    warehouse_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY])),
):
    return success_response("Warehouse fetched successfully", await location_service.get_warehouse(db, warehouse_id))


# ---------------- STORES ----------------
@store_router.post("", response_model=APIResponse[StoreOut])
async def create_store_api(
    payload: StoreCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER])),
):
    return success_response(
        "Store created successfully",
        await location_service.create_store(db, payload, user),
    )


@store_router.get("", response_model=APIResponse[StoreListData])
async def list_stores_api(
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY, CASHIER])),
):
    data = await location_service.list_stores(db, is_active=is_active, page=page, page_size=page_size)
    return success_response("Stores fetched successfully", data)


@store_router.get("/{store_id}", response_model=APIResponse[StoreOut])
async def get_store_api(
    store_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY, CASHIER])),
):
    return success_response("Store fetched successfully", await location_service.get_store(db, store_id))
