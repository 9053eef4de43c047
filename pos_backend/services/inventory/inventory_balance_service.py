import time

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind
from pos_backend.core.exceptions import AppException
from pos_backend.models.masters.product_models import Product, ProductVariant
from pos_backend.schemas.inventory.inventory_balance_schemas import (
    InventoryBalanceListData,
    InventoryBalanceOut,
    LowStockData,
)
from pos_backend.services.inventory.balance_store import balance_model_for
from pos_backend.services.inventory.reference_resolver import LOCATION_MODELS
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)

WAREHOUSE_ONLY_FIELDS = ("zone", "aisle", "level", "bin_location")
STORE_ONLY_FIELDS = ("section", "display_area")


# =====================================================
# MAPPER
# =====================================================
def _map_balance(balance, product: Product, variant: ProductVariant | None, location) -> InventoryBalanceOut:
    kind = balance.location_kind
    threshold = balance.min_stock if balance.min_stock is not None else product.min_stock
    extra_fields = WAREHOUSE_ONLY_FIELDS if kind is LocationKind.WAREHOUSE else STORE_ONLY_FIELDS

    return InventoryBalanceOut(
        id=balance.id,
        location_type=kind,
        location_id=balance.location_id,
        location_name=location.name if location else None,
        product_id=product.id,
        product_name=product.name,
        sku=variant.sku if variant else product.sku,
        product_variant_id=balance.product_variant_id,
        variant_name=variant.name if variant else None,
        quantity=balance.quantity,
        reserved_quantity=balance.reserved_quantity,
        min_stock=balance.min_stock,
        max_stock=balance.max_stock,
        is_low_stock=threshold is not None and balance.quantity <= threshold,
        is_out_of_stock=balance.quantity <= 0,
        shelf_location=balance.shelf_location,
        last_updated=balance.last_updated,
        **{f: getattr(balance, f) for f in extra_fields},
    )


def _base_query(location_kind: LocationKind):
    model = balance_model_for(location_kind)
    location_model = LOCATION_MODELS[LocationKind(location_kind)]
    location_col = getattr(model, model.location_column)

    stmt = (
        select(model, Product, ProductVariant, location_model)
        .join(Product, model.product_id == Product.id)
        .outerjoin(ProductVariant, model.product_variant_id == ProductVariant.id)
        .join(location_model, location_col == location_model.id)
        .execution_options(populate_existing=True)
    )
    return model, location_col, stmt


def _low_stock_condition(model):
    return model.quantity <= func.coalesce(model.min_stock, Product.min_stock)


# =====================================================
# LIST
# =====================================================
async def list_balances(
    db: AsyncSession,
    location_kind: LocationKind,
    *,
    location_id: int | None = None,
    product_id: int | None = None,
    search: str | None = None,
    low_stock_only: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> InventoryBalanceListData:
    t0 = time.perf_counter()
    model, location_col, stmt = _base_query(location_kind)

    filters = [Product.is_deleted.is_(False)]
    if location_id:
        filters.append(location_col == location_id)
    if product_id:
        filters.append(model.product_id == product_id)
    if search:
        filters.append(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.sku.ilike(f"%{search}%"),
            )
        )
    if low_stock_only:
        filters.append(_low_stock_condition(model))

    total = await db.scalar(
        select(func.count())
        .select_from(model)
        .join(Product, model.product_id == Product.id)
        .where(*filters)
    )

    result = await db.execute(
        stmt.where(*filters)
        .order_by(Product.name.asc(), model.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = result.all()

    logger.info(
        "[INV] list_balances",
        extra={
            "location_type": LocationKind(location_kind).value,
            "rows": len(rows),
            "t_total": round(time.perf_counter() - t0, 4),
        },
    )

    return InventoryBalanceListData(
        total=total or 0,
        items=[_map_balance(b, p, v, loc) for b, p, v, loc in rows],
    )


async def get_balance(db: AsyncSession, location_kind: LocationKind, balance_id: int) -> InventoryBalanceOut:
    model, _, stmt = _base_query(location_kind)
    row = (await db.execute(stmt.where(model.id == balance_id))).first()
    if not row:
        raise AppException(404, "Inventory record not found", ErrorCode.BALANCE_NOT_FOUND)
    return _map_balance(*row)


# =====================================================
# SETTINGS (never the quantity)
# =====================================================
async def update_balance_settings(
    db: AsyncSession,
    location_kind: LocationKind,
    balance_id: int,
    payload,
    user,
) -> InventoryBalanceOut:
    model = balance_model_for(location_kind)
    changes = payload.model_dump(exclude_unset=True)

    try:
        balance = await db.scalar(
            select(model).where(model.id == balance_id).with_for_update()
        )
        if not balance:
            raise AppException(404, "Inventory record not found", ErrorCode.BALANCE_NOT_FOUND)

        min_stock = changes.get("min_stock", balance.min_stock)
        max_stock = changes.get("max_stock", balance.max_stock)
        if min_stock is not None and max_stock is not None and max_stock < min_stock:
            raise AppException(
                400,
                "max_stock cannot be lower than min_stock",
                ErrorCode.VALIDATION_ERROR,
            )

        for field, value in changes.items():
            setattr(balance, field, value)

        if changes:
            await emit_activity(
                db,
                user=user,
                code=ActivityCode.UPDATE_INVENTORY_SETTINGS,
                location_type=LocationKind(location_kind).value,
                target_id=balance_id,
                changes=", ".join(sorted(changes)),
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return await get_balance(db, location_kind, balance_id)


# =====================================================
# LOW STOCK
# =====================================================
async def low_stock_report(
    db: AsyncSession,
    *,
    location_kind: LocationKind | None = None,
    location_id: int | None = None,
) -> LowStockData:
    """Balances at or below their threshold, zero balances included.

    The balance's own ``min_stock`` wins; the product's applies otherwise.
    """
    kinds = [LocationKind(location_kind)] if location_kind else list(LocationKind)
    items: list[InventoryBalanceOut] = []

    for kind in kinds:
        model, location_col, stmt = _base_query(kind)
        filters = [
            Product.is_deleted.is_(False),
            Product.is_trackable.is_(True),
            _low_stock_condition(model),
        ]
        if location_id:
            filters.append(location_col == location_id)

        result = await db.execute(
            stmt.where(*filters).order_by(model.quantity.asc(), Product.name.asc())
        )
        items.extend(_map_balance(b, p, v, loc) for b, p, v, loc in result.all())

    return LowStockData(
        total=len(items),
        out_of_stock=sum(1 for i in items if i.is_out_of_stock),
        items=items,
    )
