from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind
from pos_backend.core.exceptions import InvalidReferenceError
from pos_backend.models.masters.location_models import Store, Warehouse
from pos_backend.models.masters.product_models import Product, ProductVariant

LOCATION_MODELS = {
    LocationKind.WAREHOUSE: Warehouse,
    LocationKind.STORE: Store,
}


async def resolve_location(
    db: AsyncSession,
    location_kind: LocationKind,
    location_id: int,
    *,
    require_active: bool = True,
):
    location_kind = LocationKind(location_kind)
    model = LOCATION_MODELS[location_kind]

    location = await db.scalar(
        select(model).where(model.id == location_id, model.is_deleted.is_(False))
    )
    if not location:
        raise InvalidReferenceError(
            f"{location_kind.value.capitalize()} {location_id} not found",
            ErrorCode.LOCATION_NOT_FOUND,
            details={"location_type": location_kind.value, "location_id": location_id},
        )
    if require_active and not location.is_active:
        raise InvalidReferenceError(
            f"{location_kind.value.capitalize()} {location_id} is inactive",
            ErrorCode.LOCATION_INACTIVE,
            details={"location_type": location_kind.value, "location_id": location_id},
        )
    return location


async def resolve_product(
    db: AsyncSession,
    product_id: int,
    variant_id: int | None = None,
    *,
    require_active: bool = True,
) -> tuple[Product, ProductVariant | None]:
    product = await db.scalar(
        select(Product).where(Product.id == product_id, Product.is_deleted.is_(False))
    )
    if not product:
        raise InvalidReferenceError(
            f"Product {product_id} not found",
            ErrorCode.PRODUCT_NOT_FOUND,
            details={"product_id": product_id},
        )
    if require_active and not product.is_active:
        raise InvalidReferenceError(
            f"Product {product.name} is inactive",
            ErrorCode.PRODUCT_INACTIVE,
            details={"product_id": product_id},
        )

    if variant_id is None:
        return product, None

    variant = await db.scalar(
        select(ProductVariant).where(
            ProductVariant.id == variant_id,
            ProductVariant.product_id == product_id,
        )
    )
    if not variant:
        raise InvalidReferenceError(
            f"Variant {variant_id} does not belong to product {product_id}",
            ErrorCode.PRODUCT_NOT_FOUND,
            details={"product_id": product_id, "product_variant_id": variant_id},
        )
    if require_active and not variant.is_active:
        raise InvalidReferenceError(
            f"Variant {variant.sku} is inactive",
            ErrorCode.PRODUCT_INACTIVE,
            details={"product_id": product_id, "product_variant_id": variant_id},
        )
    return product, variant
