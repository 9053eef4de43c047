from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import ADMIN, MANAGER, INVENTORY, CASHIER
from pos_backend.schemas.masters.product_schemas import (
    ProductCreate,
    ProductOut,
    ProductListData,
    VariantCreate,
)
from pos_backend.services.masters.product_service import (
    create_product,
    add_variant,
    get_product,
    list_products,
)
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=APIResponse[ProductOut])
async def create_product_api(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY])),
):
    return success_response("Product created successfully", await create_product(db, payload, user))


@router.get("", response_model=APIResponse[ProductListData])
async def list_products_api(
    search: str | None = Query(None),
    category: str | None = Query(None),
    supplier_id: int | None = Query(None),
    is_active: bool | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY, CASHIER])),
):
    data = await list_products(
        db,
        search=search,
        category=category,
        supplier_id=supplier_id,
        is_active=is_active,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response("Products fetched successfully", data)


@router.get("/{product_id}", response_model=APIResponse[ProductOut])
async def get_product_api(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY, CASHIER])),
):
    return success_response("Product fetched successfully", await get_product(db, product_id))


@router.post("/{product_id}/variants", response_model=APIResponse[ProductOut])
async def add_variant_api(
    product_id: int,
    payload: VariantCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role([ADMIN, MANAGER, INVENTORY])),
):
    return success_response("Variant added successfully", await add_variant(db, product_id, payload, user))
