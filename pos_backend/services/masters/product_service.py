# pos_backend/services/masters/product_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from pos_backend.models.masters.product_models import Product, ProductVariant
from pos_backend.models.masters.supplier_models import Supplier
from pos_backend.schemas.masters.product_schemas import (
    ProductCreate,
    ProductOut,
    ProductListData,
    VariantCreate,
    VariantOut,
)
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "name": Product.name,
    "sku": Product.sku,
    "selling_price": Product.selling_price,
    "created_at": Product.created_at,
}


def _map_product(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        sku=product.sku,
        barcode=product.barcode,
        name=product.name,
        description=product.description,
        category=product.category,
        brand=product.brand,
        unit=product.unit,
        cost_price=product.cost_price,
        selling_price=product.selling_price,
        min_stock=product.min_stock,
        max_stock=product.max_stock,
        supplier_id=product.supplier_id,
        is_trackable=product.is_trackable,
        is_active=product.is_active,
        variants=[VariantOut.model_validate(v) for v in product.variants],
        created_by=product.created_by_id,
        created_by_name=product.created_by_username,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


async def _sku_taken(db: AsyncSession, sku: str) -> bool:
    in_products = await db.scalar(select(Product.id).where(Product.sku == sku))
    in_variants = await db.scalar(select(ProductVariant.id).where(ProductVariant.sku == sku))
    return bool(in_products or in_variants)


# ---------------- CREATE ----------------
async def create_product(db: AsyncSession, payload: ProductCreate, user) -> ProductOut:
    if await _sku_taken(db, payload.sku):
        raise AppException(409, "SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    if payload.supplier_id is not None:
        supplier_exists = await db.scalar(
            select(Supplier.id).where(Supplier.id == payload.supplier_id, Supplier.is_deleted.is_(False))
        )
        if not supplier_exists:
            raise AppException(400, "Supplier not found", ErrorCode.SUPPLIER_NOT_FOUND)

    product = Product(
        **payload.model_dump(),
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(product)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # Race on SKU, or a duplicate barcode
        raise AppException(409, "SKU or barcode already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    await emit_activity(
        db,
        user=user,
        code=ActivityCode.CREATE_PRODUCT,
        target_name=payload.name,
        sku=payload.sku,
    )

    await db.commit()
    return await get_product(db, product.id)


async def add_variant(db: AsyncSession, product_id: int, payload: VariantCreate, user) -> ProductOut:
    product = await db.scalar(
        select(Product).where(Product.id == product_id, Product.is_deleted.is_(False))
    )
    if not product:
        raise AppException(404, "Product not found", ErrorCode.PRODUCT_NOT_FOUND)

    if await _sku_taken(db, payload.sku):
        raise AppException(409, "SKU already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    db.add(ProductVariant(product_id=product_id, **payload.model_dump()))

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "SKU or barcode already exists", ErrorCode.PRODUCT_SKU_EXISTS)

    await emit_activity(
        db,
        user=user,
        code=ActivityCode.CREATE_PRODUCT_VARIANT,
        target_name=payload.name,
        sku=payload.sku,
        product_id=product_id,
    )

    await db.commit()
    return await get_product(db, product_id)


# ---------------- READ ----------------
async def get_product(db: AsyncSession, product_id: int) -> ProductOut:
    product = await db.scalar(
        select(Product)
        .where(Product.id == product_id, Product.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    if not product:
        raise AppException(404, "Product not found", ErrorCode.PRODUCT_NOT_FOUND)
    return _map_product(product)


async def list_products(
    db: AsyncSession,
    *,
    search: str | None = None,
    category: str | None = None,
    supplier_id: int | None = None,
    is_active: bool | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "name",
    order: str = "asc",
) -> ProductListData:
    filters = [Product.is_deleted.is_(False)]

    if search:
        filters.append(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.sku.ilike(f"%{search}%"),
                Product.barcode.ilike(f"%{search}%"),
            )
        )
    if category:
        filters.append(Product.category == category)
    if supplier_id:
        filters.append(Product.supplier_id == supplier_id)
    if is_active is not None:
        filters.append(Product.is_active.is_(is_active))

    sort_col = ALLOWED_SORT_FIELDS.get(sort_by, Product.name)
    sort_expr = sort_col.desc() if order == "desc" else sort_col.asc()

    total = await db.scalar(select(func.count()).select_from(Product).where(*filters))
    result = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(sort_expr, Product.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return ProductListData(
        total=total or 0,
        items=[_map_product(p) for p in result.unique().scalars().all()],
    )
