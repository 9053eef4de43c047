import re
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from pos_backend.models.masters.supplier_models import Supplier
from pos_backend.schemas.masters.supplier_schemas import (
    SupplierCreate,
    SupplierOut,
    SupplierListData,
)
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.utils.activity_helpers import emit_activity


def generate_supplier_code(name: str, phone: Optional[str]) -> str:
    clean_name = re.sub(r"[^A-Za-z]", "", name or "").upper()
    prefix_name = clean_name[:3].ljust(3, "X")
    digits = re.sub(r"[^0-9]", "", phone or "")
    prefix_phone = digits[-3:] if len(digits) >= 3 else digits.zfill(3)
    return f"SUP-{prefix_name}{prefix_phone}-{uuid.uuid4().hex[:6].upper()}"


def _map_supplier(supplier: Supplier) -> SupplierOut:
    return SupplierOut(
        id=supplier.id,
        supplier_code=supplier.supplier_code,
        name=supplier.name,
        contact_person=supplier.contact_person,
        phone=supplier.phone,
        email=supplier.email,
        address=supplier.address,
        tax_number=supplier.tax_number,
        payment_terms=supplier.payment_terms,
        is_active=supplier.is_active,
        created_by_name=supplier.created_by_username,
        created_at=supplier.created_at,
    )


async def create_supplier(db: AsyncSession, payload: SupplierCreate, user) -> SupplierOut:
    exists = await db.scalar(
        select(Supplier.id).where(
            Supplier.name == payload.name,
            Supplier.is_deleted.is_(False),
        )
    )
    if exists:
        raise AppException(409, "Supplier already exists", ErrorCode.SUPPLIER_NAME_EXISTS)

    supplier = Supplier(
        supplier_code=generate_supplier_code(payload.name, payload.phone),
        **payload.model_dump(),
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(supplier)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Supplier already exists", ErrorCode.SUPPLIER_NAME_EXISTS)

    await emit_activity(
        db,
        user=user,
        code=ActivityCode.CREATE_SUPPLIER,
        target_name=supplier.name,
    )

    await db.commit()
    return await get_supplier(db, supplier.id)


async def get_supplier(db: AsyncSession, supplier_id: int) -> SupplierOut:
    supplier = await db.scalar(
        select(Supplier)
        .where(Supplier.id == supplier_id, Supplier.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    if not supplier:
        raise AppException(404, "Supplier not found", ErrorCode.SUPPLIER_NOT_FOUND)
    return _map_supplier(supplier)


async def list_suppliers(
    db: AsyncSession,
    *,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> SupplierListData:
    filters = [Supplier.is_deleted.is_(False)]
    if search:
        filters.append(
            or_(
                Supplier.name.ilike(f"%{search}%"),
                Supplier.supplier_code.ilike(f"%{search}%"),
                Supplier.phone.ilike(f"%{search}%"),
            )
        )

    total = await db.scalar(select(func.count()).select_from(Supplier).where(*filters))
    result = await db.execute(
        select(Supplier)
        .where(*filters)
        .order_by(Supplier.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return SupplierListData(
        total=total or 0,
        items=[_map_supplier(s) for s in result.scalars().all()],
    )
