from decimal import Decimal

import pytest
from sqlalchemy import select

from pos_backend.constants.error_codes import ErrorCode
from pos_backend.constants.inventory import LocationKind, MovementKind, ReferenceType, TransferStatus
from pos_backend.core.exceptions import AppException, InsufficientStockError
from pos_backend.models import InventoryTransaction
from pos_backend.schemas.inventory.stock_transfer_schemas import StockTransferCreate
from pos_backend.services.inventory import balance_store
from pos_backend.services.inventory.stock_transfer_service import (
    cancel_stock_transfer,
    create_stock_transfer,
    execute_stock_transfer,
    list_stock_transfers,
)
from pos_backend.services.inventory.stock_mutator import apply_stock_movement


async def quantity_at(db, product_id, kind, location_id):
    balance = await balance_store.find_balance(
        db,
        product_id=product_id,
        variant_id=None,
        location_kind=kind,
        location_id=location_id,
    )
    return balance.quantity if balance else Decimal("0")


def warehouse_to_store(warehouse_id, store_id, *lines):
    return StockTransferCreate(
        from_warehouse_id=warehouse_id,
        to_store_id=store_id,
        items=[{"product_id": pid, "quantity": qty} for pid, qty in lines],
    )


async def test_executed_transfer_moves_stock_symmetrically(
    db, admin, warehouse, store, product, seed_warehouse_stock
):
    await seed_warehouse_stock(product.id, 100)

    transfer = await create_stock_transfer(db, warehouse_to_store(warehouse.id, store.id, (product.id, 30)), admin)
    assert transfer.status == TransferStatus.PENDING.value
    assert transfer.from_location_type == LocationKind.WAREHOUSE
    assert transfer.to_location_type == LocationKind.STORE
    # Nothing moves until execution
    assert await quantity_at(db, product.id, LocationKind.WAREHOUSE, warehouse.id) == Decimal("100")

    done = await execute_stock_transfer(db, transfer.id, admin)
    assert done.status == TransferStatus.COMPLETED.value
    assert done.approved_by == admin.id
    assert done.items[0].quantity_shipped == done.items[0].quantity_received == Decimal("30")

    assert await quantity_at(db, product.id, LocationKind.WAREHOUSE, warehouse.id) == Decimal("70")
    assert await quantity_at(db, product.id, LocationKind.STORE, store.id) == Decimal("30")

    entries = (
        await db.scalars(
            select(InventoryTransaction)
            .where(
                InventoryTransaction.reference_type == ReferenceType.TRANSFER.value,
                InventoryTransaction.reference_id == transfer.id,
            )
            .order_by(InventoryTransaction.id)
        )
    ).all()
    assert [(e.transaction_type, e.location_type, e.quantity) for e in entries] == [
        (MovementKind.OUT.value, LocationKind.WAREHOUSE.value, Decimal("30")),
        (MovementKind.IN.value, LocationKind.STORE.value, Decimal("30")),
    ]


async def test_transfer_creation_checks_source_stock(db, admin, warehouse, store, product, seed_warehouse_stock):
    await seed_warehouse_stock(product.id, 5)

    with pytest.raises(InsufficientStockError):
        await create_stock_transfer(db, warehouse_to_store(warehouse.id, store.id, (product.id, 6)), admin)


async def test_execution_fails_atomically_when_stock_drained(
    db, admin, warehouse, store, product, second_product, seed_warehouse_stock
):
    await seed_warehouse_stock(product.id, 10)
    await seed_warehouse_stock(second_product.id, 10)
    transfer = await create_stock_transfer(
        db,
        warehouse_to_store(warehouse.id, store.id, (product.id, 5), (second_product.id, 8)),
        admin,
    )

    # Stock leaves the source between request and execution
    await apply_stock_movement(
        db,
        kind=MovementKind.ADJUSTMENT,
        product_id=second_product.id,
        variant_id=None,
        location_kind=LocationKind.WAREHOUSE,
        location_id=warehouse.id,
        quantity=3,
        reference_type=ReferenceType.ADJUSTMENT,
        reference_id=None,
        actor=admin,
        notes="Recount",
    )
    await db.commit()

    transfer_id, product_id, second_id = transfer.id, product.id, second_product.id
    warehouse_id, store_id = warehouse.id, store.id

    with pytest.raises(InsufficientStockError):
        await execute_stock_transfer(db, transfer_id, admin)

    assert await quantity_at(db, product_id, LocationKind.WAREHOUSE, warehouse_id) == Decimal("10")
    assert await quantity_at(db, product_id, LocationKind.STORE, store_id) == Decimal("0")
    assert await quantity_at(db, second_id, LocationKind.WAREHOUSE, warehouse_id) == Decimal("3")

    pending = await list_stock_transfers(db, status=TransferStatus.PENDING)
    assert pending.total == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"from_warehouse_id": 1, "from_store_id": 1, "to_store_id": 1},
        {"to_store_id": 1},
        {"from_warehouse_id": 1},
    ],
)
async def test_each_side_needs_exactly_one_location(db, admin, payload):
    with pytest.raises(AppException) as exc:
        await create_stock_transfer(
            db,
            StockTransferCreate(items=[{"product_id": 1, "quantity": 1}], **payload),
            admin,
        )
    assert exc.value.error_code == ErrorCode.STOCK_TRANSFER_INVALID_LOCATION


async def test_same_source_and_destination_rejected(db, admin, store, product):
    with pytest.raises(AppException) as exc:
        await create_stock_transfer(
            db,
            StockTransferCreate(
                from_store_id=store.id,
                to_store_id=store.id,
                items=[{"product_id": product.id, "quantity": 1}],
            ),
            admin,
        )
    assert exc.value.error_code == ErrorCode.STOCK_TRANSFER_INVALID_LOCATION


async def test_cancelled_transfer_cannot_execute(db, admin, warehouse, store, product, seed_warehouse_stock):
    await seed_warehouse_stock(product.id, 10)
    transfer = await create_stock_transfer(db, warehouse_to_store(warehouse.id, store.id, (product.id, 1)), admin)

    cancelled = await cancel_stock_transfer(db, transfer.id, admin)
    assert cancelled.status == TransferStatus.CANCELLED.value

    with pytest.raises(AppException) as exc:
        await execute_stock_transfer(db, transfer.id, admin)
    assert exc.value.error_code == ErrorCode.STOCK_TRANSFER_INVALID_STATUS
