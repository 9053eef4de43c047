from decimal import Decimal

import pytest

from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.core.exceptions import AppException, InvalidReferenceError
from pos_backend.core.scheduler import log_low_stock
from pos_backend.schemas.inventory.inventory_balance_schemas import StoreInventoryUpdate
from pos_backend.schemas.inventory.inventory_transaction_schemas import AdjustInventoryRequest
from pos_backend.services.inventory.adjustment_service import adjust_inventory
from pos_backend.services.inventory.inventory_balance_service import (
    list_balances,
    low_stock_report,
    update_balance_settings,
)
from pos_backend.services.inventory.movement_ledger import list_movements

from conftest import ledger_count


def adjustment(store_id, product_id, quantity, reason="Monthly recount"):
    return AdjustInventoryRequest(
        location_type=LocationKind.STORE,
        location_id=store_id,
        product_id=product_id,
        quantity=quantity,
        reason=reason,
    )


# =====================================================
# ADJUSTMENTS
# =====================================================
async def test_adjustment_records_counted_quantity(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 100)

    out = await adjust_inventory(db, adjustment(store.id, product.id, 80, "Water damage"), admin)

    assert out.previous_quantity == Decimal("100")
    assert out.new_quantity == Decimal("80")
    assert out.difference == Decimal("-20")

    page = await list_movements(db, reference_type=ReferenceType.ADJUSTMENT)
    assert page["total"] == 1
    entry = page["items"][0]
    assert entry.id == out.transaction_id
    assert entry.notes == "Water damage"
    assert entry.reference_id is None


async def test_adjustment_can_open_a_balance(db, admin, store, product):
    out = await adjust_inventory(db, adjustment(store.id, product.id, 12), admin)

    assert out.previous_quantity == Decimal("0")
    assert out.difference == Decimal("12")


@pytest.mark.parametrize("reason", ["", "   "])
async def test_adjustment_requires_reason(db, admin, store, product, reason):
    with pytest.raises(AppException) as exc:
        await adjust_inventory(db, adjustment(store.id, product.id, 5, reason), admin)

    assert exc.value.error_code == ErrorCode.ADJUSTMENT_REASON_REQUIRED
    assert await ledger_count(db) == 0


async def test_adjustment_at_unknown_location_is_rejected(db, admin, product):
    with pytest.raises(InvalidReferenceError) as exc:
        await adjust_inventory(db, adjustment(777, product.id, 5), admin)

    assert exc.value.error_code == ErrorCode.LOCATION_NOT_FOUND


# =====================================================
# LEDGER QUERIES
# =====================================================
async def test_movements_are_listed_newest_first(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)
    await seed_store_stock(product.id, 5)
    await adjust_inventory(db, adjustment(store.id, product.id, 12), admin)

    page = await list_movements(db, product_id=product.id, location_kind=LocationKind.STORE)
    assert page["total"] == 3
    assert [e.transaction_type for e in page["items"]] == [
        MovementKind.ADJUSTMENT.value,
        MovementKind.IN.value,
        MovementKind.IN.value,
    ]
    assert sum(e.signed_quantity for e in page["items"]) == Decimal("12")

    only_in = await list_movements(db, transaction_type=MovementKind.IN, page_size=1)
    assert only_in["total"] == 2
    assert len(only_in["items"]) == 1


# =====================================================
# BALANCES / LOW STOCK
# =====================================================
async def test_low_stock_uses_balance_threshold_before_product(
    db, admin, store, product, second_product, service_product, seed_store_stock
):
    # product min_stock is 5 for both trackable products
    await seed_store_stock(product.id, 4)
    await seed_store_stock(second_product.id, 8)

    report = await low_stock_report(db, location_kind=LocationKind.STORE, location_id=store.id)
    assert [i.product_id for i in report.items] == [product.id]

    balances = await list_balances(db, LocationKind.STORE, product_id=second_product.id)
    await update_balance_settings(
        db,
        LocationKind.STORE,
        balances.items[0].id,
        StoreInventoryUpdate(min_stock=10, section="Aisle 3"),
        admin,
    )

    report = await low_stock_report(db, location_kind=LocationKind.STORE)
    assert {i.product_id for i in report.items} == {product.id, second_product.id}
    assert report.out_of_stock == 0


async def test_zero_balance_counts_as_out_of_stock(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 3)
    await adjust_inventory(db, adjustment(store.id, product.id, 0), admin)

    report = await low_stock_report(db)
    assert report.total == 1
    assert report.out_of_stock == 1
    assert report.items[0].is_out_of_stock

    assert await log_low_stock(db) == 1


async def test_settings_reject_max_below_min(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 3)
    balances = await list_balances(db, LocationKind.STORE)

    with pytest.raises(AppException) as exc:
        await update_balance_settings(
            db,
            LocationKind.STORE,
            balances.items[0].id,
            StoreInventoryUpdate(min_stock=10, max_stock=5),
            admin,
        )
    assert exc.value.error_code == ErrorCode.VALIDATION_ERROR
