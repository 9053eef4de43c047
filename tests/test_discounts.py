from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from pos_backend.constants.error_codes import ErrorCode
from pos_backend.core.exceptions import AppException, InsufficientStockError, InvalidReferenceError
from pos_backend.models import Customer, Discount, DiscountUsage, Sale
from pos_backend.models.base.mixins import utcnow
from pos_backend.schemas.masters.discount_schemas import DiscountCreate
from pos_backend.schemas.sales.sale_schemas import SaleCreate
from pos_backend.services.masters.discount_service import create_discount, list_discounts
from pos_backend.services.sales.sale_service import create_sale

TODAY = utcnow().date()


async def make_discount(db, admin, code="PROMO", **kw):
    kw.setdefault("discount_type", "percentage")
    kw.setdefault("discount_value", Decimal("10"))
    discount = Discount(name=f"{code} promo", code=code, created_by_id=admin.id, **kw)
    db.add(discount)
    await db.commit()
    return discount


def discounted_sale(store_id, discount_id, *, product_id, quantity=2, paid=20000, **kw):
    return SaleCreate(
        store_id=store_id,
        discount_id=discount_id,
        items=[{"product_id": product_id, "quantity": quantity, "unit_price": 10000}],
        payments=[{"payment_method": "cash", "amount": paid}],
        **kw,
    )


async def reload_discount(db, discount_id):
    return await db.scalar(
        select(Discount).where(Discount.id == discount_id).execution_options(populate_existing=True)
    )


async def usage_rows(db, discount_id):
    return await db.scalar(
        select(func.count()).select_from(DiscountUsage).where(DiscountUsage.discount_id == discount_id)
    )


# =====================================================
# SALE-TIME APPLICATION
# =====================================================
async def test_percentage_discount_is_capped_and_recorded(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, max_discount=Decimal("1500"))
    discount_id = discount.id

    sale = await create_sale(db, discounted_sale(store.id, discount_id, product_id=product.id), admin)

    assert sale.discount_id == discount_id
    assert sale.subtotal == Decimal("20000.00")
    assert sale.discount_amount == Decimal("1500.00")
    assert sale.total_amount == Decimal("18500.00")
    assert sale.change_amount == Decimal("1500.00")

    assert (await reload_discount(db, discount_id)).usage_count == 1
    usage = await db.scalar(select(DiscountUsage).where(DiscountUsage.sale_id == sale.id))
    assert usage.discount_id == discount_id
    assert usage.amount == Decimal("1500.00")


async def test_fixed_discount_stacks_with_manual_discount(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, code="MINUS3K", discount_type="fixed", discount_value=Decimal("3000"))

    sale = await create_sale(
        db,
        discounted_sale(store.id, discount.id, product_id=product.id, discount_amount=500),
        admin,
    )

    assert sale.discount_amount == Decimal("3500.00")
    assert sale.total_amount == Decimal("16500.00")


async def test_fixed_discount_never_exceeds_subtotal(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, code="BIGFIX", discount_type="fixed", discount_value=Decimal("50000"))

    sale = await create_sale(db, discounted_sale(store.id, discount.id, quantity=1, paid=1, product_id=product.id), admin)

    assert sale.discount_amount == Decimal("10000.00")
    assert sale.total_amount == Decimal("0.00")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"is_active": False}, "not active"),
        ({"end_date": TODAY - timedelta(days=2)}, "expired"),
        ({"start_date": TODAY + timedelta(days=2)}, "not yet active"),
        ({"usage_limit": 1, "usage_count": 1}, "usage limit reached"),
        ({"min_purchase": Decimal("50000")}, "Minimum purchase"),
        ({"applicable_to": "member"}, "only for members"),
    ],
)
async def test_inapplicable_discount_rejects_sale(db, admin, store, product, seed_store_stock, overrides, message):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, **overrides)
    store_id, product_id = store.id, product.id

    with pytest.raises(AppException) as exc:
        await create_sale(db, discounted_sale(store_id, discount.id, product_id=product_id), admin)

    assert exc.value.error_code == ErrorCode.DISCOUNT_NOT_APPLICABLE
    assert message in exc.value.detail
    assert await db.scalar(select(func.count()).select_from(Sale)) == 0


async def test_store_restricted_discount(db, admin, store, other_store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, store_id=other_store.id)

    with pytest.raises(AppException) as exc:
        await create_sale(db, discounted_sale(store.id, discount.id, product_id=product.id), admin)

    assert exc.value.detail == "Discount is not valid for this store"


async def test_customer_specific_discount(db, admin, store, product, member, seed_store_stock):
    await seed_store_stock(product.id, 10)
    other = Customer(customer_code="CUST-0009", name="Sari Wulan", is_member=True)
    db.add(other)
    await db.commit()
    discount = await make_discount(db, admin, applicable_to="specific_customer", customer_id=member.id)
    ids = dict(store=store.id, discount=discount.id, product=product.id, member=member.id, other=other.id)

    sale = await create_sale(
        db,
        discounted_sale(ids["store"], ids["discount"], product_id=ids["product"], customer_id=ids["member"]),
        admin,
    )
    assert sale.discount_amount == Decimal("2000.00")

    with pytest.raises(AppException) as exc:
        await create_sale(
            db,
            discounted_sale(ids["store"], ids["discount"], product_id=ids["product"], customer_id=ids["other"]),
            admin,
        )
    assert exc.value.detail == "Discount is not valid for this customer"


async def test_per_customer_limit(db, admin, store, product, member, seed_store_stock):
    await seed_store_stock(product.id, 10)
    discount = await make_discount(db, admin, applicable_to="member", usage_per_customer=1)
    store_id, discount_id, product_id, member_id = store.id, discount.id, product.id, member.id

    await create_sale(db, discounted_sale(store_id, discount_id, product_id=product_id, customer_id=member_id), admin)

    with pytest.raises(AppException) as exc:
        await create_sale(
            db,
            discounted_sale(store_id, discount_id, product_id=product_id, customer_id=member_id),
            admin,
        )
    assert "usage limit for this discount" in exc.value.detail

    assert (await reload_discount(db, discount_id)).usage_count == 1
    assert await usage_rows(db, discount_id) == 1


async def test_failed_sale_does_not_consume_discount(db, admin, store, product, member, seed_store_stock):
    await seed_store_stock(product.id, 1)
    discount = await make_discount(db, admin, usage_limit=5)
    store_id, discount_id, product_id, member_id = store.id, discount.id, product.id, member.id

    with pytest.raises(InsufficientStockError):
        await create_sale(
            db,
            discounted_sale(store_id, discount_id, quantity=2, product_id=product_id, customer_id=member_id),
            admin,
        )

    assert (await reload_discount(db, discount_id)).usage_count == 0
    assert await usage_rows(db, discount_id) == 0
    assert await db.scalar(select(func.count()).select_from(Sale)) == 0


async def test_unknown_discount_is_invalid_reference(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)

    with pytest.raises(InvalidReferenceError) as exc:
        await create_sale(db, discounted_sale(store.id, 9999, product_id=product.id), admin)

    assert exc.value.error_code == ErrorCode.DISCOUNT_NOT_FOUND


# =====================================================
# MASTER DATA
# =====================================================
async def test_create_discount_normalises_code(db, admin, store):
    created = await create_discount(
        db,
        DiscountCreate(
            name="Opening week",
            code=" opening ",
            discount_type="fixed",
            discount_value=Decimal("5000"),
            store_id=store.id,
            start_date=TODAY,
            end_date=TODAY + timedelta(days=7),
        ),
        admin,
    )

    assert created.code == "OPENING"
    assert created.is_active is True
    assert created.created_by_name == "admin@pos.test"

    listed = await list_discounts(db, store_id=store.id)
    assert [d.code for d in listed.items] == ["OPENING"]


@pytest.mark.parametrize(
    "fields, error_code",
    [
        ({"discount_type": "percentage", "discount_value": Decimal("120")}, ErrorCode.DISCOUNT_INVALID_VALUE),
        (
            {"start_date": TODAY, "end_date": TODAY - timedelta(days=1)},
            ErrorCode.DISCOUNT_INVALID_RANGE,
        ),
        ({"applicable_to": "specific_customer"}, ErrorCode.VALIDATION_ERROR),
    ],
)
async def test_create_discount_rejects_bad_terms(db, admin, fields, error_code):
    data = {"name": "Bad", "code": "BAD", "discount_type": "fixed", "discount_value": Decimal("10")}
    data.update(fields)

    with pytest.raises(AppException) as exc:
        await create_discount(db, DiscountCreate(**data), admin)

    assert exc.value.error_code == error_code
