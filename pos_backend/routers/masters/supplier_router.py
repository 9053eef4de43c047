from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.core.db import get_db
from pos_backend.constants.roles import STOCK_ROLES
from pos_backend.schemas.masters.supplier_schemas import SupplierCreate, SupplierOut, SupplierListData
from pos_backend.services.masters.supplier_service import create_supplier, get_supplier, list_suppliers
from pos_backend.utils.check_roles import require_role
from pos_backend.utils.response import APIResponse, success_response

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.post("", response_model=APIResponse[SupplierOut])
async def create_supplier_api(
    payload: SupplierCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Supplier created successfully", await create_supplier(db, payload, user))


@router.get("", response_model=APIResponse[SupplierListData])
async def list_suppliers_api(
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    data = await list_suppliers(db, search=search, page=page, page_size=page_size)
    return success_response("Suppliers fetched successfully", data)


@router.get("/{supplier_id}", response_model=APIResponse[SupplierOut])
async def get_supplier_api(
    supplier_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STOCK_ROLES)),
):
    return success_response("Supplier fetched successfully", await get_supplier(db, supplier_id))
