from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import select, func

from pos_backend.constants import roles
from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind, ReferenceType
from pos_backend.core.exceptions import AppException, InsufficientStockError, InvalidReferenceError
from pos_backend.models import Customer, Sale
from pos_backend.schemas.sales.sale_schemas import SaleCreate, SaleItemCreate, SalePaymentCreate
from pos_backend.services.inventory import balance_store
from pos_backend.services.sales.sale_service import (
    create_sale,
    list_sales,
    loyalty_points_for,
    sales_stats,
)

from conftest import create_test_user, ledger_count, stock_in


def sale_payload(store_id, lines, paid, **kw):
    return SaleCreate(
        store_id=store_id,
        items=[
            {"product_id": pid, "quantity": qty, "unit_price": price}
            for pid, qty, price in lines
        ],
        payments=[{"payment_method": "cash", "amount": paid}],
        **kw,
    )


async def store_quantity(db, product_id, store_id):
    balance = await balance_store.find_balance(
        db,
        product_id=product_id,
        variant_id=None,
        location_kind=LocationKind.STORE,
        location_id=store_id,
    )
    return balance.quantity if balance else None


@pytest.fixture
async def cashier(db, store):
    return await create_test_user(db, "cashier@pos.test", roles.CASHIER, store_id=store.id)


async def test_sale_takes_stock_out_of_store(db, cashier, store, product, seed_store_stock):
    await seed_store_stock(product.id, 50)

    sale = await create_sale(
        db,
        sale_payload(store.id, [(product.id, 20, 10000)], 250000),
        cashier,
    )

    assert sale.total_amount == Decimal("200000.00")
    assert sale.change_amount == Decimal("50000.00")
    assert sale.payment_method == "cash"
    assert sale.sale_number.startswith("TRX")
    assert sale.items[0].product_name == "Coffee Beans 1kg"

    assert await store_quantity(db, product.id, store.id) == Decimal("30")
    assert await ledger_count(db, reference_type=ReferenceType.SALE.value, reference_id=sale.id) == 1


async def test_failed_line_rolls_back_whole_sale(db, cashier, store, product, second_product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    await seed_store_stock(second_product.id, 2)
    product_id, second_id, store_id = product.id, second_product.id, store.id
    entries_before = await ledger_count(db)

    with pytest.raises(InsufficientStockError):
        await create_sale(
            db,
            sale_payload(store_id, [(product_id, 5, 10000), (second_id, 3, 5000)], 100000),
            cashier,
        )

    assert await db.scalar(select(func.count()).select_from(Sale)) == 0
    assert await store_quantity(db, product_id, store_id) == Decimal("10")
    assert await store_quantity(db, second_id, store_id) == Decimal("2")
    assert await ledger_count(db) == entries_before


async def test_non_trackable_product_moves_no_stock(db, cashier, store, service_product):
    sale = await create_sale(
        db,
        sale_payload(store.id, [(service_product.id, 1, 2000)], 2000),
        cashier,
    )

    assert sale.total_amount == Decimal("2000.00")
    assert await store_quantity(db, service_product.id, store.id) is None
    assert await ledger_count(db) == 0


async def test_member_sale_updates_customer_and_points(db, admin, store, product, member, seed_store_stock):
    await seed_store_stock(product.id, 10)
    member_id = member.id

    sale = await create_sale(
        db,
        sale_payload(
            store.id,
            [(product.id, 2, 12500)],
            25000,
            customer_id=member_id,
            loyalty_points_redeemed=1,
        ),
        admin,
    )

    assert sale.loyalty_points_earned == loyalty_points_for(Decimal("25000")) == 2

    customer = await db.scalar(
        select(Customer).where(Customer.id == member_id).execution_options(populate_existing=True)
    )
    assert customer.loyalty_points == 3 + 2 - 1
    assert customer.total_spent == Decimal("25000.00")
    assert customer.last_visit is not None


async def test_redeeming_more_points_than_held_is_rejected(db, admin, store, product, member, seed_store_stock):
    await seed_store_stock(product.id, 10)

    with pytest.raises(AppException) as exc:
        await create_sale(
            db,
            sale_payload(
                store.id,
                [(product.id, 1, 10000)],
                10000,
                customer_id=member.id,
                loyalty_points_redeemed=50,
            ),
            admin,
        )
    assert exc.value.error_code == ErrorCode.LOYALTY_POINTS_INVALID


async def test_non_member_cannot_redeem_points(db, admin, store, product, seed_store_stock):
    walk_in = Customer(customer_code="CUST-0002", name="Budi Santoso", is_member=False, loyalty_points=10)
    db.add(walk_in)
    await db.commit()
    await seed_store_stock(product.id, 10)
    customer_id, store_id, product_id = walk_in.id, store.id, product.id

    with pytest.raises(AppException) as exc:
        await create_sale(
            db,
            sale_payload(
                store_id,
                [(product_id, 1, 10000)],
                10000,
                customer_id=customer_id,
                loyalty_points_redeemed=5,
            ),
            admin,
        )
    assert exc.value.error_code == ErrorCode.LOYALTY_POINTS_INVALID
    assert exc.value.detail == "Only members can redeem points"

    customer = await db.scalar(
        select(Customer).where(Customer.id == customer_id).execution_options(populate_existing=True)
    )
    assert customer.loyalty_points == 10
    assert await store_quantity(db, product_id, store_id) == Decimal("10")


@pytest.mark.parametrize("quantity", ["1E+30", "0.0001"])
def test_sale_line_quantity_must_fit_column_precision(quantity):
    with pytest.raises(ValidationError):
        sale_payload(1, [(1, quantity, 100)], 100)


@pytest.mark.parametrize("quantity", [Decimal("1E+30"), Decimal("0.0004")])
async def test_unvalidated_quantity_is_a_client_error(db, cashier, store, product, seed_store_stock, quantity):
    await seed_store_stock(product.id, 10)
    payload = SaleCreate.model_construct(
        store_id=store.id,
        items=[SaleItemCreate.model_construct(product_id=product.id, quantity=quantity, unit_price=Decimal("100"))],
        payments=[SalePaymentCreate(payment_method="cash", amount=Decimal("100"))],
    )

    with pytest.raises(AppException) as exc:
        await create_sale(db, payload, cashier)

    assert exc.value.status_code == 400
    assert exc.value.error_code == ErrorCode.VALIDATION_ERROR
    assert await db.scalar(select(func.count()).select_from(Sale)) == 0


async def test_underpaid_sale_is_rejected(db, cashier, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    store_id, product_id = store.id, product.id

    with pytest.raises(AppException) as exc:
        await create_sale(db, sale_payload(store_id, [(product_id, 3, 10000)], 20000), cashier)

    assert exc.value.error_code == ErrorCode.SALE_UNDERPAID
    assert await store_quantity(db, product_id, store_id) == Decimal("10")


async def test_unknown_product_is_invalid_reference(db, cashier, store):
    with pytest.raises(InvalidReferenceError):
        await create_sale(db, sale_payload(store.id, [(424242, 1, 100)], 100), cashier)


async def test_cashier_cannot_sell_from_another_store(db, cashier, other_store, product):
    with pytest.raises(AppException) as exc:
        await create_sale(db, sale_payload(other_store.id, [(product.id, 1, 100)], 100), cashier)

    assert exc.value.status_code == 403
    assert exc.value.error_code == ErrorCode.SALE_STORE_FORBIDDEN


async def test_listing_and_stats_are_scoped_to_cashier_store(
    db, admin, cashier, store, other_store, product, seed_store_stock
):
    await seed_store_stock(product.id, 10)
    await stock_in(db, admin, product.id, LocationKind.STORE, other_store.id, 10)

    await create_sale(db, sale_payload(store.id, [(product.id, 1, 10000)], 10000), cashier)
    await create_sale(db, sale_payload(other_store.id, [(product.id, 2, 10000)], 20000), admin)

    mine = await list_sales(db, cashier)
    assert mine.total == 1
    assert mine.items[0].store_id == store.id

    everything = await list_sales(db, admin)
    assert everything.total == 2

    stats = await sales_stats(db, admin)
    assert stats.total_sales == 2
    assert stats.total_revenue == Decimal("30000.00")
    assert stats.average_sale == Decimal("15000.00")
