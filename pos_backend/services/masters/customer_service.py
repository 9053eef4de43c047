import re
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from pos_backend.models.masters.customer_models import Customer
from pos_backend.schemas.masters.customer_schemas import (
    CustomerCreate,
    CustomerOut,
    CustomerListData,
)
from pos_backend.core.exceptions import AppException
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.utils.activity_helpers import emit_activity


def generate_customer_code(name: str, phone: Optional[str]) -> str:
    clean_name = re.sub(r"[^A-Za-z]", "", name or "").upper()
    prefix_name = clean_name[:3].ljust(3, "X")
    digits = re.sub(r"[^0-9]", "", phone or "")
    prefix_phone = digits[-4:] if len(digits) >= 4 else digits.zfill(4)
    return f"CUS-{prefix_name}{prefix_phone}-{uuid.uuid4().hex[:6].upper()}"


async def create_customer(db: AsyncSession, payload: CustomerCreate, user) -> CustomerOut:
    if payload.email:
        exists = await db.scalar(
            select(Customer.id).where(
                func.lower(Customer.email) == payload.email.lower(),
                Customer.is_deleted.is_(False),
            )
        )
        if exists:
            raise AppException(409, "Customer email already exists", ErrorCode.CUSTOMER_EMAIL_EXISTS)

    customer = Customer(
        customer_code=generate_customer_code(payload.name, payload.phone),
        **payload.model_dump(),
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(customer)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Customer email already exists", ErrorCode.CUSTOMER_EMAIL_EXISTS)

    await emit_activity(
        db,
        user=user,
        code=ActivityCode.CREATE_CUSTOMER,
        target_name=customer.name,
    )

    await db.commit()
    return await get_customer(db, customer.id)


async def get_customer(db: AsyncSession, customer_id: int) -> CustomerOut:
    customer = await db.scalar(
        select(Customer)
        .where(Customer.id == customer_id, Customer.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    if not customer:
        raise AppException(404, "Customer not found", ErrorCode.CUSTOMER_NOT_FOUND)
    return CustomerOut.model_validate(customer)


async def list_customers(
    db: AsyncSession,
    *,
    search: str | None = None,
    is_member: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> CustomerListData:
    filters = [Customer.is_deleted.is_(False)]
    if search:
        filters.append(
            or_(
                Customer.name.ilike(f"%{search}%"),
                Customer.email.ilike(f"%{search}%"),
                Customer.phone.ilike(f"%{search}%"),
                Customer.customer_code.ilike(f"%{search}%"),
            )
        )
    if is_member is not None:
        filters.append(Customer.is_member.is_(is_member))

    total = await db.scalar(select(func.count()).select_from(Customer).where(*filters))
    result = await db.execute(
        select(Customer)
        .where(*filters)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return CustomerListData(
        total=total or 0,
        items=[CustomerOut.model_validate(c) for c in result.scalars().all()],
    )
