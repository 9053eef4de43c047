# pos_backend/services/masters/discount_service.py

from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from pos_backend.models.base.mixins import utcnow
from pos_backend.models.masters.customer_models import Customer
from pos_backend.models.masters.discount_models import Discount, DiscountUsage
from pos_backend.schemas.masters.discount_schemas import DiscountCreate, DiscountOut, DiscountListData
from pos_backend.core.exceptions import AppException, InvalidReferenceError
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.inventory import LocationKind
from pos_backend.constants.sales import DiscountType, DiscountApplicableTo
from pos_backend.services.inventory.reference_resolver import resolve_location
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.decimal_utils import to_money
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)


# ---------------- VALIDATION ----------------
def _validate_discount(payload: DiscountCreate):
    if payload.discount_type == DiscountType.PERCENTAGE and payload.discount_value > 100:
        raise AppException(400, "Invalid percentage discount", ErrorCode.DISCOUNT_INVALID_VALUE)

    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        raise AppException(400, "Invalid date range", ErrorCode.DISCOUNT_INVALID_RANGE)

    if payload.applicable_to == DiscountApplicableTo.SPECIFIC_CUSTOMER and payload.customer_id is None:
        raise AppException(
            400,
            "A customer is required for a customer-specific discount",
            ErrorCode.VALIDATION_ERROR,
        )


def _map_discount(discount: Discount) -> DiscountOut:
    out = DiscountOut.model_validate(discount)
    out.created_by_name = discount.created_by_username
    return out


# ---------------- CREATE ----------------
async def create_discount(db: AsyncSession, payload: DiscountCreate, user) -> DiscountOut:
    _validate_discount(payload)
    code = payload.code.strip().upper()

    exists = await db.scalar(select(Discount.id).where(Discount.code == code))
    if exists:
        raise AppException(409, "Discount code already exists", ErrorCode.DISCOUNT_CODE_EXISTS)

    if payload.store_id is not None:
        await resolve_location(db, LocationKind.STORE, payload.store_id)
    if payload.customer_id is not None:
        customer = await db.scalar(
            select(Customer.id).where(Customer.id == payload.customer_id, Customer.is_deleted.is_(False))
        )
        if not customer:
            raise InvalidReferenceError(f"Customer {payload.customer_id} not found", ErrorCode.CUSTOMER_NOT_FOUND)

    discount = Discount(
        **payload.model_dump(exclude={"code", "discount_type", "applicable_to"}),
        code=code,
        discount_type=payload.discount_type.value,
        applicable_to=payload.applicable_to.value,
        usage_count=0,
        is_active=True,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(discount)

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Discount code already exists", ErrorCode.DISCOUNT_CODE_EXISTS)

    await emit_activity(
        db,
        user=user,
        code=ActivityCode.CREATE_DISCOUNT,
        target_name=discount.name,
        target_code=discount.code,
    )

    await db.commit()
    return await get_discount(db, discount.id)


# ---------------- DEACTIVATE ----------------
async def deactivate_discount(db: AsyncSession, discount_id: int, user) -> DiscountOut:
    discount = await db.scalar(
        select(Discount)
        .where(Discount.id == discount_id, Discount.is_deleted.is_(False))
        .with_for_update(of=Discount)
    )
    if not discount:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)

    if discount.is_active:
        discount.is_active = False
        discount.updated_by_id = user.id
        await emit_activity(
            db,
            user=user,
            code=ActivityCode.DEACTIVATE_DISCOUNT,
            target_name=discount.name,
            target_code=discount.code,
        )

    await db.commit()
    return await get_discount(db, discount_id)


# ---------------- GET ----------------
async def get_discount(db: AsyncSession, discount_id: int) -> DiscountOut:
    discount = await db.scalar(
        select(Discount)
        .where(Discount.id == discount_id, Discount.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    if not discount:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return _map_discount(discount)


# ---------------- LIST ----------------
async def list_discounts(
    db: AsyncSession,
    *,
    search: str | None = None,
    is_active: bool | None = None,
    store_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> DiscountListData:
    filters = [Discount.is_deleted.is_(False)]
    if search:
        filters.append(or_(Discount.name.ilike(f"%{search}%"), Discount.code.ilike(f"%{search}%")))
    if is_active is not None:
        filters.append(Discount.is_active.is_(is_active))
    if store_id is not None:
        filters.append(or_(Discount.store_id.is_(None), Discount.store_id == store_id))

    total = await db.scalar(select(func.count()).select_from(Discount).where(*filters))
    result = await db.execute(
        select(Discount)
        .where(*filters)
        .order_by(Discount.created_at.desc(), Discount.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return DiscountListData(
        total=total or 0,
        items=[_map_discount(d) for d in result.scalars().all()],
    )


# =====================================================
# SALE-TIME APPLICATION
# =====================================================
async def lock_discount(db: AsyncSession, discount_id: int) -> Discount:
    """Load a discount under a row lock for the rest of the sale transaction."""
    discount = await db.scalar(
        select(Discount)
        .where(Discount.id == discount_id, Discount.is_deleted.is_(False))
        .with_for_update(of=Discount)
    )
    if not discount:
        raise InvalidReferenceError(f"Discount {discount_id} not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return discount


def _not_applicable(message: str, discount: Discount):
    return AppException(
        400,
        message,
        ErrorCode.DISCOUNT_NOT_APPLICABLE,
        details={"discount_id": discount.id, "code": discount.code},
    )


async def evaluate_discount(
    db: AsyncSession,
    discount: Discount,
    *,
    subtotal: Decimal,
    store_id: int,
    customer: Customer | None,
    today: date | None = None,
) -> Decimal:
    """Check a discount against a sale and return the amount it takes off.

    The amount never exceeds max_discount (when set) or the subtotal itself.
    """
    today = today or utcnow().date()

    if not discount.is_active:
        raise _not_applicable("Discount is not active", discount)
    if discount.start_date and today < discount.start_date:
        raise _not_applicable("Discount not yet active", discount)
    if discount.end_date and today > discount.end_date:
        raise _not_applicable("Discount has expired", discount)
    if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
        raise _not_applicable("Discount usage limit reached", discount)
    if discount.store_id is not None and discount.store_id != store_id:
        raise _not_applicable("Discount is not valid for this store", discount)
    if subtotal < discount.min_purchase:
        raise _not_applicable(f"Minimum purchase of {to_money(discount.min_purchase)} required", discount)

    if discount.applicable_to == DiscountApplicableTo.MEMBER.value:
        if customer is None or not customer.is_member:
            raise _not_applicable("Discount is only for members", discount)
    elif discount.applicable_to == DiscountApplicableTo.SPECIFIC_CUSTOMER.value:
        if customer is None or customer.id != discount.customer_id:
            raise _not_applicable("Discount is not valid for this customer", discount)

    if discount.usage_per_customer is not None and customer is not None:
        used = await db.scalar(
            select(func.count())
            .select_from(DiscountUsage)
            .where(
                DiscountUsage.discount_id == discount.id,
                DiscountUsage.customer_id == customer.id,
            )
        )
        if used >= discount.usage_per_customer:
            raise _not_applicable("Customer has reached the usage limit for this discount", discount)

    if discount.discount_type == DiscountType.PERCENTAGE.value:
        amount = subtotal * discount.discount_value / Decimal("100")
    else:
        amount = Decimal(discount.discount_value)

    if discount.max_discount is not None:
        amount = min(amount, discount.max_discount)
    return to_money(min(amount, subtotal))


def record_discount_usage(
    db: AsyncSession,
    discount: Discount,
    *,
    sale_id: int,
    customer_id: int | None,
    amount: Decimal,
):
    """Count one use of a locked discount. Rides on the caller's transaction."""
    discount.usage_count = discount.usage_count + 1
    db.add(
        DiscountUsage(
            discount_id=discount.id,
            sale_id=sale_id,
            customer_id=customer_id,
            amount=amount,
        )
    )
    logger.info(
        "Discount applied",
        extra={"discount_id": discount.id, "sale_id": sale_id, "amount": str(amount)},
    )
