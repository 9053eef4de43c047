import secrets
from datetime import datetime, time as dtime, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.constants.activity_codes import ActivityCode
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.constants.roles import ALL_STORES_ROLES
from pos_backend.constants.sales import PaymentStatus, SaleStatus
from pos_backend.core.config import LOYALTY_MIN_PURCHASE
from pos_backend.core.exceptions import AppException, InvalidReferenceError
from pos_backend.models.base.mixins import utcnow
from pos_backend.models.masters.customer_models import Customer
from pos_backend.models.sales.sale_models import Sale, SaleItem, SalePayment
from pos_backend.schemas.sales.sale_schemas import (
    SaleCreate,
    SaleItemOut,
    SaleListData,
    SaleOut,
    SalePaymentOut,
    SalesStats,
)
from pos_backend.services.inventory.reference_resolver import resolve_location, resolve_product
from pos_backend.services.inventory.stock_mutator import apply_stock_movement
from pos_backend.services.masters.discount_service import evaluate_discount, lock_discount, record_discount_usage
from pos_backend.utils.activity_helpers import emit_activity
from pos_backend.utils.decimal_utils import line_quantity, to_money
from pos_backend.utils.logger import get_logger

logger = get_logger(__name__)


def generate_sale_number() -> str:
    now = datetime.now(timezone.utc)
    return f"TRX{now:%Y%m%d}{now:%H%M%S}{now.microsecond // 1000:03d}{secrets.token_hex(2).upper()}"


def loyalty_points_for(total: Decimal) -> int:
    """One point per LOYALTY_MIN_PURCHASE spent."""
    if total <= 0:
        return 0
    return int(total // LOYALTY_MIN_PURCHASE)


def _store_scope(user) -> int | None:
    """Store a non-admin user is pinned to; None means every store."""
    if user.role.lower() in ALL_STORES_ROLES:
        return None
    if user.store_id is None:
        raise AppException(
            403,
            "User is not assigned to a store",
            ErrorCode.SALE_STORE_FORBIDDEN,
        )
    return user.store_id


# =====================================================
# MAPPER
# =====================================================
def _map_sale(sale: Sale) -> SaleOut:
    return SaleOut(
        id=sale.id,
        sale_number=sale.sale_number,
        store_id=sale.store_id,
        customer_id=sale.customer_id,
        discount_id=sale.discount_id,
        cashier_id=sale.cashier_id,
        subtotal=sale.subtotal,
        tax_amount=sale.tax_amount,
        discount_amount=sale.discount_amount,
        total_amount=sale.total_amount,
        paid_amount=sale.paid_amount,
        change_amount=sale.change_amount,
        loyalty_points_earned=sale.loyalty_points_earned,
        loyalty_points_redeemed=sale.loyalty_points_redeemed,
        payment_status=sale.payment_status,
        sale_status=sale.sale_status,
        payment_method=sale.payment_method,
        notes=sale.notes,
        sale_date=sale.sale_date,
        items=[
            SaleItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product.name if i.product else None,
                product_variant_id=i.product_variant_id,
                quantity=i.quantity,
                unit_price=i.unit_price,
                discount_amount=i.discount_amount,
                total_price=i.total_price,
            )
            for i in sale.items
        ],
        payments=[
            SalePaymentOut(
                id=p.id,
                payment_method=p.payment_method,
                amount=p.amount,
                reference_number=p.reference_number,
                status=p.status,
            )
            for p in sale.payments
        ],
    )


# =====================================================
# CREATE (sale completion)
# =====================================================
async def create_sale(db: AsyncSession, payload: SaleCreate, user) -> SaleOut:
    """Record a completed sale and take its goods out of the store.

    All-or-nothing: if any line fails (unknown product, short stock) the
    sale, its stock movements, the customer stats and any discount usage
    are all rolled back.
    """
    scope = _store_scope(user)
    if scope is not None and scope != payload.store_id:
        raise AppException(
            403,
            "You can only sell from your assigned store",
            ErrorCode.SALE_STORE_FORBIDDEN,
        )

    try:
        await resolve_location(db, LocationKind.STORE, payload.store_id)

        customer = None
        if payload.customer_id is not None:
            customer = await db.scalar(
                select(Customer)
                .where(
                    Customer.id == payload.customer_id,
                    Customer.is_deleted.is_(False),
                )
                .with_for_update(of=Customer)
            )
            if not customer:
                raise InvalidReferenceError(
                    f"Customer {payload.customer_id} not found",
                    ErrorCode.CUSTOMER_NOT_FOUND,
                )

        if payload.loyalty_points_redeemed:
            if customer is None or not customer.is_member:
                raise AppException(
                    400,
                    "Only members can redeem points",
                    ErrorCode.LOYALTY_POINTS_INVALID,
                )
            if payload.loyalty_points_redeemed > customer.loyalty_points:
                raise AppException(
                    400,
                    "Not enough loyalty points to redeem",
                    ErrorCode.LOYALTY_POINTS_INVALID,
                )

        # ---------------- lines ----------------
        lines = []
        subtotal = to_money(0)
        for line in payload.items:
            product, _ = await resolve_product(db, line.product_id, line.product_variant_id)
            quantity = line_quantity(line.quantity)
            line_total = to_money(quantity * line.unit_price - line.discount_amount)
            if line_total < 0:
                raise AppException(
                    400,
                    f"Line discount exceeds line value for product {product.name}",
                    ErrorCode.VALIDATION_ERROR,
                )
            subtotal += line_total
            lines.append((line, product, quantity, line_total))

        discount = None
        discount_value = to_money(0)
        if payload.discount_id is not None:
            discount = await lock_discount(db, payload.discount_id)
            discount_value = await evaluate_discount(
                db,
                discount,
                subtotal=subtotal,
                store_id=payload.store_id,
                customer=customer,
            )

        total = to_money(subtotal + payload.tax_amount - payload.discount_amount - discount_value)
        if total < 0:
            raise AppException(400, "Sale total cannot be negative", ErrorCode.VALIDATION_ERROR)

        paid = to_money(sum((p.amount for p in payload.payments), Decimal("0")))
        if paid < total:
            raise AppException(
                400,
                f"Payments ({paid}) do not cover the sale total ({total})",
                ErrorCode.SALE_UNDERPAID,
                details={"total": str(total), "paid": str(paid)},
            )

        points_earned = loyalty_points_for(total) if customer is not None and customer.is_member else 0

        sale = Sale(
            sale_number=generate_sale_number(),
            store_id=payload.store_id,
            customer_id=payload.customer_id,
            discount_id=payload.discount_id,
            cashier_id=user.id,
            subtotal=subtotal,
            tax_amount=to_money(payload.tax_amount),
            discount_amount=to_money(payload.discount_amount) + discount_value,
            total_amount=total,
            paid_amount=paid,
            change_amount=max(paid - total, to_money(0)),
            loyalty_points_earned=points_earned,
            loyalty_points_redeemed=payload.loyalty_points_redeemed,
            payment_status=PaymentStatus.PAID.value,
            sale_status=SaleStatus.COMPLETED.value,
            payment_method=payload.payments[0].payment_method.value,
            notes=payload.notes,
        )
        for line, _, quantity, line_total in lines:
            sale.items.append(
                SaleItem(
                    product_id=line.product_id,
                    product_variant_id=line.product_variant_id,
                    quantity=quantity,
                    unit_price=to_money(line.unit_price),
                    discount_amount=to_money(line.discount_amount),
                    total_price=line_total,
                )
            )
        for p in payload.payments:
            sale.payments.append(
                SalePayment(
                    payment_method=p.payment_method.value,
                    amount=to_money(p.amount),
                    reference_number=p.reference_number,
                    status=PaymentStatus.PAID.value,
                )
            )

        db.add(sale)
        await db.flush()

        if discount is not None:
            record_discount_usage(
                db,
                discount,
                sale_id=sale.id,
                customer_id=payload.customer_id,
                amount=discount_value,
            )

        # ---------------- stock ----------------
        for line, product, quantity, _ in lines:
            if not product.is_trackable:
                continue
            await apply_stock_movement(
                db,
                kind=MovementKind.OUT,
                product_id=line.product_id,
                variant_id=line.product_variant_id,
                location_kind=LocationKind.STORE,
                location_id=payload.store_id,
                quantity=quantity,
                reference_type=ReferenceType.SALE,
                reference_id=sale.id,
                actor=user,
                unit_cost=to_money(line.unit_price),
                notes=f"Sale {sale.sale_number}",
            )

        # ---------------- customer ----------------
        if customer is not None:
            customer.total_spent = to_money(customer.total_spent) + total
            customer.last_visit = utcnow()
            customer.loyalty_points = customer.loyalty_points + points_earned - payload.loyalty_points_redeemed
            customer.updated_by_id = user.id

        await emit_activity(
            db,
            user=user,
            code=ActivityCode.CREATE_SALE,
            target_name=sale.sale_number,
            amount=total,
            store_id=payload.store_id,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Sale completed",
        extra={"sale_id": sale.id, "store_id": sale.store_id, "total": str(total), "lines": len(lines)},
    )
    return await get_sale(db, sale.id, user)


# =====================================================
# READ
# =====================================================
async def get_sale(db: AsyncSession, sale_id: int, user) -> SaleOut:
    sale = await db.scalar(
        select(Sale)
        .where(Sale.id == sale_id)
        .execution_options(populate_existing=True)
    )
    if not sale:
        raise AppException(404, "Sale not found", ErrorCode.SALE_NOT_FOUND)

    scope = _store_scope(user)
    if scope is not None and sale.store_id != scope:
        raise AppException(404, "Sale not found", ErrorCode.SALE_NOT_FOUND)

    return _map_sale(sale)


def _sale_filters(user, store_id, status, date_from, date_to):
    scope = _store_scope(user)
    if scope is not None:
        store_id = scope

    filters = []
    if store_id:
        filters.append(Sale.store_id == store_id)
    if status:
        filters.append(Sale.sale_status == SaleStatus(status).value)
    if date_from:
        filters.append(Sale.sale_date >= date_from)
    if date_to:
        filters.append(Sale.sale_date <= date_to)
    return filters


async def list_sales(
    db: AsyncSession,
    user,
    *,
    store_id: int | None = None,
    status: SaleStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> SaleListData:
    filters = _sale_filters(user, store_id, status, date_from, date_to)

    total = await db.scalar(select(func.count()).select_from(Sale).where(*filters))
    result = await db.execute(
        select(Sale)
        .where(*filters)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return SaleListData(
        total=total or 0,
        items=[_map_sale(s) for s in result.scalars().all()],
    )


async def sales_stats(db: AsyncSession, user, *, store_id: int | None = None) -> SalesStats:
    filters = _sale_filters(user, store_id, SaleStatus.COMPLETED, None, None)
    today_start = datetime.combine(utcnow().date(), dtime.min, tzinfo=timezone.utc)

    count, revenue = (
        await db.execute(
            select(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0)).where(*filters)
        )
    ).one()
    today_count, today_revenue = (
        await db.execute(
            select(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0))
            .where(*filters, Sale.sale_date >= today_start)
        )
    ).one()

    revenue = to_money(revenue)
    return SalesStats(
        total_sales=count,
        total_revenue=revenue,
        today_sales=today_count,
        today_revenue=to_money(today_revenue),
        average_sale=to_money(revenue / count) if count else to_money(0),
    )
