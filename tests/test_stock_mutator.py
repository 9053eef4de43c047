from decimal import Decimal

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import InvalidRequestError

from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType
from pos_backend.core.exceptions import (
    InsufficientStockError,
    InvalidMovementError,
    PersistenceError,
)
from pos_backend.models import InventoryTransaction, StoreInventory, ProductVariant
from pos_backend.models.inventory.inventory_transaction_models import LedgerImmutableError
from pos_backend.services.inventory import balance_store
from pos_backend.services.inventory.stock_mutator import apply_stock_movement

from conftest import ledger_count, make_session_factory


async def _move(db, actor, kind, product_id, location_id, quantity, **kw):
    kw.setdefault("location_kind", LocationKind.STORE)
    kw.setdefault("reference_type", ReferenceType.SALE)
    kw.setdefault("reference_id", 1)
    kw.setdefault("variant_id", None)
    return await apply_stock_movement(
        db,
        kind=kind,
        product_id=product_id,
        location_id=location_id,
        quantity=quantity,
        actor=actor,
        **kw,
    )


async def test_out_movement_reduces_balance_and_records_entry(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 50)

    result = await _move(db, admin, MovementKind.OUT, product.id, store.id, 20)
    await db.commit()

    assert result.previous_quantity == Decimal("50")
    assert result.new_quantity == Decimal("30")
    assert result.delta == Decimal("-20")
    assert result.balance.quantity == Decimal("30")

    entry = result.entry
    assert entry.transaction_type == MovementKind.OUT.value
    assert entry.quantity == Decimal("20")
    assert entry.signed_quantity == Decimal("-20")
    assert entry.location_type == LocationKind.STORE.value
    assert entry.store_id == store.id
    assert entry.warehouse_id is None
    assert entry.reference_type == ReferenceType.SALE.value
    assert entry.created_by_id == admin.id


async def test_out_movement_beyond_balance_is_rejected(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 50)
    before = await ledger_count(db)

    with pytest.raises(InsufficientStockError) as exc:
        await _move(db, admin, MovementKind.OUT, product.id, store.id, 60)

    assert exc.value.available == Decimal("50")
    assert exc.value.requested == Decimal("60")
    assert exc.value.details["location_type"] == "store"

    balance = await balance_store.find_balance(
        db,
        product_id=product.id,
        variant_id=None,
        location_kind=LocationKind.STORE,
        location_id=store.id,
    )
    assert balance.quantity == Decimal("50")
    assert await ledger_count(db) == before


async def test_out_movement_on_missing_balance_is_rejected(db, admin, store, product):
    with pytest.raises(InsufficientStockError) as exc:
        await _move(db, admin, MovementKind.OUT, product.id, store.id, 1)

    assert exc.value.available == Decimal("0")
    assert await ledger_count(db) == 0


async def test_first_receipt_creates_balance(db, admin, warehouse, product):
    result = await _move(
        db,
        admin,
        MovementKind.IN,
        product.id,
        warehouse.id,
        100,
        location_kind=LocationKind.WAREHOUSE,
        reference_type=ReferenceType.PURCHASE,
    )
    await db.commit()

    assert result.previous_quantity == Decimal("0")
    assert result.new_quantity == Decimal("100")
    assert result.balance.warehouse_id == warehouse.id
    assert result.entry.warehouse_id == warehouse.id
    assert result.entry.signed_quantity == Decimal("100")


async def test_adjustment_sets_absolute_quantity_and_records_delta(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 100)

    result = await _move(
        db,
        admin,
        MovementKind.ADJUSTMENT,
        product.id,
        store.id,
        80,
        reference_type=ReferenceType.ADJUSTMENT,
        reference_id=None,
        notes="Damaged in storage",
    )
    await db.commit()

    assert result.new_quantity == Decimal("80")
    assert result.entry.quantity == Decimal("-20")
    assert result.entry.signed_quantity == Decimal("-20")
    assert result.entry.notes == "Damaged in storage"


async def test_adjustment_to_same_quantity_still_recorded(db, admin, store, product, seed_store_stock):
    await seed_store_stock(product.id, 10)

    result = await _move(
        db,
        admin,
        MovementKind.ADJUSTMENT,
        product.id,
        store.id,
        10,
        reference_type=ReferenceType.ADJUSTMENT,
        reference_id=None,
    )
    await db.commit()

    assert result.delta == Decimal("0")
    assert result.entry.quantity == Decimal("0")


@pytest.mark.parametrize(
    "kind, quantity",
    [
        (MovementKind.IN, 0),
        (MovementKind.OUT, 0),
        (MovementKind.IN, -5),
        (MovementKind.ADJUSTMENT, -1),
        (MovementKind.OUT, "abc"),
    ],
)
async def test_invalid_quantities_are_rejected(db, admin, store, product, kind, quantity):
    with pytest.raises(InvalidMovementError):
        await _move(db, admin, kind, product.id, store.id, quantity)

    assert await ledger_count(db) == 0


async def test_get_or_create_is_idempotent(db, store, product):
    key = dict(
        product_id=product.id,
        variant_id=None,
        location_kind=LocationKind.STORE,
        location_id=store.id,
    )
    first = await balance_store.get_or_create(db, **key)
    second = await balance_store.get_or_create(db, **key)
    await db.commit()

    assert first.id == second.id
    count = await db.scalar(select(func.count()).select_from(StoreInventory))
    assert count == 1


async def test_get_or_create_rereads_row_inserted_by_concurrent_writer(
    db, store, product, seed_store_stock, monkeypatch
):
    # The first lookup misses as if another transaction inserted the row
    # after we looked; the insert then hits the unique index.
    await seed_store_stock(product.id, 7)

    real_find = balance_store.find_balance
    calls = []

    async def find_after_race(db, **kw):
        calls.append(kw)
        if len(calls) == 1:
            return None
        return await real_find(db, **kw)

    monkeypatch.setattr(balance_store, "find_balance", find_after_race)

    balance = await balance_store.get_or_create(
        db,
        product_id=product.id,
        variant_id=None,
        location_kind=LocationKind.STORE,
        location_id=store.id,
    )
    await db.commit()

    assert len(calls) == 2
    assert balance.quantity == Decimal("7")
    count = await db.scalar(select(func.count()).select_from(StoreInventory))
    assert count == 1


async def test_locking_lookup_loads_no_relationships(engine, store, product, seed_store_stock):
    await seed_store_stock(product.id, 3)
    store_id, product_id = store.id, product.id

    async with make_session_factory(engine)() as fresh:
        balance = await balance_store.find_balance(
            fresh,
            product_id=product_id,
            variant_id=None,
            location_kind=LocationKind.STORE,
            location_id=store_id,
            lock=True,
        )
        assert balance.quantity == Decimal("3")
        with pytest.raises(InvalidRequestError):
            balance.product


async def test_variant_and_base_product_have_separate_balances(db, admin, store, product, seed_store_stock):
    variant = ProductVariant(product_id=product.id, sku="SKU-COFFEE-DARK", name="Dark Roast")
    db.add(variant)
    await db.commit()

    await seed_store_stock(product.id, 5)
    await seed_store_stock(product.id, 7, variant_id=variant.id)

    base = await balance_store.find_balance(
        db, product_id=product.id, variant_id=None, location_kind=LocationKind.STORE, location_id=store.id
    )
    dark = await balance_store.find_balance(
        db, product_id=product.id, variant_id=variant.id, location_kind=LocationKind.STORE, location_id=store.id
    )
    assert base.quantity == Decimal("5")
    assert dark.quantity == Decimal("7")
    assert base.id != dark.id


async def test_ledger_entries_cannot_be_modified(db, admin, store, product, seed_store_stock):
    result = await seed_store_stock(product.id, 5)
    entry_id = result.entry.id

    entry = await db.get(InventoryTransaction, entry_id)
    entry.notes = "rewritten"
    with pytest.raises(LedgerImmutableError):
        await db.flush()
    await db.rollback()

    entry = await db.get(InventoryTransaction, entry_id)
    await db.delete(entry)
    with pytest.raises(LedgerImmutableError):
        await db.flush()
    await db.rollback()


async def test_unknown_product_fails_to_persist(db, admin, store):
    with pytest.raises(PersistenceError):
        await _move(
            db,
            admin,
            MovementKind.IN,
            99999,
            store.id,
            1,
            reference_type=ReferenceType.PURCHASE,
        )
    await db.rollback()
