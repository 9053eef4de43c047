from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from pos_backend.models.masters.location_models import Warehouse, Store
from pos_backend.schemas.masters.location_schemas import (
    LocationCreate,
    LocationOut,
    LocationListData,
    StoreCreate,
    StoreOut,
    StoreListData,
)
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.utils.activity_helpers import emit_activity


async def _create_location(db: AsyncSession, model, payload, user, code: ActivityCode):
    normalized_code = payload.code.strip().upper()
    exists = await db.scalar(select(model.id).where(model.code == normalized_code))
    if exists:
        raise AppException(409, f"Location code {normalized_code} already exists", ErrorCode.LOCATION_CODE_EXISTS)

    location = model(
        **payload.model_dump(exclude={"code"}),
        code=normalized_code,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(location)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, f"Location code {normalized_code} already exists", ErrorCode.LOCATION_CODE_EXISTS)

    await emit_activity(db, user=user, code=code, target_name=location.name)
    await db.commit()
    return location


async def _get_location(db: AsyncSession, model, location_id: int):
    location = await db.scalar(
        select(model)
        .where(model.id == location_id, model.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    if not location:
        raise AppException(404, "Location not found", ErrorCode.LOCATION_NOT_FOUND)
    return location


async def _list_locations(db: AsyncSession, model, is_active: bool | None, page: int, page_size: int):
    filters = [model.is_deleted.is_(False)]
    if is_active is not None:
        filters.append(model.is_active.is_(is_active))

    total = await db.scalar(select(func.count()).select_from(model).where(*filters))
    result = await db.execute(
        select(model)
        .where(*filters)
        .order_by(model.code.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return total or 0, result.scalars().all()


# ---------------- WAREHOUSES ----------------
async def create_warehouse(db: AsyncSession, payload: LocationCreate, user) -> LocationOut:
    warehouse = await _create_location(db, Warehouse, payload, user, ActivityCode.CREATE_WAREHOUSE)
    return LocationOut.model_validate(warehouse)


async def get_warehouse(db: AsyncSession, warehouse_id: int) -> LocationOut:
    return LocationOut.model_validate(await _get_location(db, Warehouse, warehouse_id))


async def list_warehouses(db: AsyncSession, *, is_active=None, page=1, page_size=50) -> LocationListData:
    total, rows = await _list_locations(db, Warehouse, is_active, page, page_size)
    return LocationListData(total=total, items=[LocationOut.model_validate(w) for w in rows])


# ---------------- STORES ----------------
async def create_store(db: AsyncSession, payload: StoreCreate, user) -> StoreOut:
    if payload.warehouse_id is not None:
        await _get_location(db, Warehouse, payload.warehouse_id)
    store = await _create_location(db, Store, payload, user, ActivityCode.CREATE_STORE)
    return StoreOut.model_validate(store)


async def get_store(db: AsyncSession, store_id: int) -> StoreOut:
    return StoreOut.model_validate(await _get_location(db, Store, store_id))


async def list_stores(db: AsyncSession, *, is_active=None, page=1, page_size=50) -> StoreListData:
    total, rows = await _list_locations(db, Store, is_active, page, page_size)
    return StoreListData(total=total, items=[StoreOut.model_validate(s) for s in rows])
